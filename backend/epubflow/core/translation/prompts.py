"""Prompt text for the translate and proofread passes."""

from typing import Tuple

from epubflow.models.schemas.workflow import WorkflowConfig


# Preset instructions used when "recommended prompts" is enabled
RECOMMENDED_TRANSLATION_PROMPT = """You are a professional literary translator.
Your task is to translate the provided text into the target language while preserving the original tone, style, and formatting.

Guidelines:
1. Translate the content accurately.
2. Maintain the markdown structure (headers, bold, italics).
3. Do not output any explanations or conversational text, only the translated content.
4. Keep proper nouns and specific terms consistent."""

RECOMMENDED_PROOFREAD_PROMPT = """You are a professional proofreader.
Your task is to review the text for grammar, flow, and translation errors.

Guidelines:
1. Fix any grammatical errors or awkward phrasings.
2. Ensure the tone is consistent.
3. Do not change the meaning of the text.
4. Return only the corrected markdown text."""

# Appended to the translation preset; the writer renders the reply as Markdown
OUTPUT_FORMAT_CONSTRAINTS = """## Output Format
- Output ONLY the translated Markdown. No preface, notes or commentary.
- Do not wrap the output in code fences.
- Keep every heading marker (#), list marker, blockquote and image reference exactly where it appears in the source.
- Keep image paths and link targets unchanged."""

PROOFREAD_SYSTEM_INSTRUCTION = "You are a specialized proofreading engine."

TRANSLATE_TEMPERATURE = 0.3
PROOFREAD_TEMPERATURE = 0.1


def effective_instructions(config: WorkflowConfig) -> Tuple[str, str]:
    """Resolve (translation instruction, proofread instruction) for a run."""
    if config.use_recommended_prompts:
        return (
            f"{RECOMMENDED_TRANSLATION_PROMPT}\n\n{OUTPUT_FORMAT_CONSTRAINTS}",
            RECOMMENDED_PROOFREAD_PROMPT,
        )
    return config.system_instruction, config.proofread_instruction


def position_note(index: int, total: int) -> str:
    """Note telling the model which part of a split chapter it is seeing."""
    return (
        f"[System Note: This is part {index} of {total} of the chapter. "
        "Maintain strict terminology and stylistic consistency with previous parts.]"
    )


def with_position_note(system_instruction: str, index: int, total: int) -> str:
    if total <= 1:
        return system_instruction
    return f"{system_instruction}\n\n{position_note(index, total)}"


def translate_system_instruction(target_language: str, instruction: str) -> str:
    return f"MANDATORY INSTRUCTION: Translate the content into {target_language}.\n\n{instruction}"


def translate_prompt(chunk: str, target_language: str) -> str:
    return f"Translate the following Markdown content into {target_language}. \n\nCONTENT:\n{chunk}"


def proofread_prompt(chunk: str, instruction: str) -> str:
    return f"Check the following Markdown content. {instruction}\n\nCONTENT:\n{chunk}"
