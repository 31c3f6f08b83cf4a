"""Stylesheets and language helpers for generated EPUBs."""

# Target language name -> BCP 47 code written to dc:language
LANGUAGE_CODES: dict[str, str] = {
    "Chinese (Simplified)": "zh-CN",
    "Chinese (Traditional)": "zh-TW",
    "English": "en",
    "Japanese": "ja",
    "Korean": "ko",
    "French": "fr",
    "German": "de",
    "Spanish": "es",
    "Russian": "ru",
    "Italian": "it",
    "Portuguese": "pt",
}

DEFAULT_LANGUAGE_CODE = "en"

# Language code prefixes that get the ideographic stylesheet
CJK_PREFIXES = ("zh", "ja", "ko")


def language_code(target_language: str) -> str:
    """Map a target language name (or code) to a dc:language code."""
    if target_language in LANGUAGE_CODES:
        return LANGUAGE_CODES[target_language]
    lowered = target_language.strip().lower()
    for name, code in LANGUAGE_CODES.items():
        if lowered == name.lower() or lowered == code.lower():
            return code
    return DEFAULT_LANGUAGE_CODE


def is_cjk_language(target_language: str) -> bool:
    """Whether the target language is Chinese, Japanese or Korean."""
    lowered = target_language.lower()
    if any(word in lowered for word in ("chinese", "japanese", "korean")):
        return True
    return language_code(target_language).lower().startswith(CJK_PREFIXES)


CJK_EPUB_CSS = """@charset "UTF-8";

/* Base typography: Song font stack, inter-ideograph justification */
body {
    font-family: "ZY-XIAOBIAOSONG", "Songti SC", "SimSun", "STSong", "Times New Roman", serif;
    font-size: 1em;
    line-height: 1.8em;
    text-align: justify;
    text-justify: inter-ideograph;
    word-break: break-all;
    padding: 0 3%;
    color: #333;
    margin: 0;
}

h1, h2, h3, h4, h5, h6 {
    font-family: "fzqys", "ZY-XIAOBIAOSONG", "PingFang SC", "Microsoft YaHei", sans-serif;
    font-weight: normal;
    color: #2e5b60;
    text-align: center;
    margin-top: 1em;
    margin-bottom: 2.2em;
    line-height: 1.6;
}

h1 {
    font-size: 1.3em;
    border-bottom: 1px dotted #A2906A;
    padding-bottom: 0.6em;
}

h2 { font-size: 1.15em; }
h3 { font-size: 1.1em; }

/* Paragraphs: first-line indent of two characters */
p {
    text-indent: 2em;
    margin: 0.5em 0;
    line-height: 1.8em;
    text-align: justify;
    text-justify: inter-ideograph;
}

blockquote {
    font-family: "fs2", "ZY-FANGSONG", "FangSong", "KaiTi", serif;
    font-size: 1em;
    margin: 1.8em 1em;
    padding: 0;
    text-indent: 2em;
    color: #412938;
    border: none;
    background: none;
}

hr {
    border: 0;
    border-top: 1px dotted #A2906A;
    margin: 2em auto;
    width: 60%;
    color: #A2906A;
    background-color: transparent;
    height: 1px;
}

ul, ol {
    margin: 1em 0 1em 2em;
    padding: 0;
}

li {
    margin-bottom: 0.3em;
}

img {
    display: block;
    margin: 1.5em auto;
    max-width: 100%;
    height: auto;
    border-radius: 2px;
}

pre, code {
    font-family: "Consolas", "Monaco", monospace;
    background-color: #f5f5f5;
    padding: 0.2em;
    border-radius: 3px;
    font-size: 0.9em;
    color: #d63384;
}

a {
    color: #2e5b60;
    text-decoration: none;
    border-bottom: 1px dashed #2e5b60;
}
"""

DEFAULT_EPUB_CSS = """@charset "UTF-8";

body {
    font-family: "Times New Roman", serif;
    line-height: 1.6;
    padding: 0 3%;
    color: #333;
    margin: 0;
}

h1, h2, h3, h4, h5, h6 {
    font-family: Helvetica, Arial, sans-serif;
    font-weight: bold;
    color: #1a1a1a;
    text-align: center;
    margin-top: 1.5em;
    margin-bottom: 1em;
}

h1 { border-bottom: 1px solid #eee; padding-bottom: 0.5em; }

/* Western paragraphs use margin spacing, not indentation */
p {
    text-indent: 0;
    margin-bottom: 1.2em;
    margin-top: 0;
}

blockquote {
    border: none;
    margin: 1em 2em;
    padding: 0;
    color: inherit;
    font-style: italic;
}

img {
    display: block;
    margin: 1.5em auto;
    max-width: 100%;
    height: auto;
}

code, pre {
    font-family: monospace;
    background: #f4f4f4;
    padding: 0.2em;
}
"""


def get_stylesheet(target_language: str) -> str:
    """Select the stylesheet variant for the target language."""
    return CJK_EPUB_CSS if is_cjk_language(target_language) else DEFAULT_EPUB_CSS
