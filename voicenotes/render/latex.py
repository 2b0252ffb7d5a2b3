# voicenotes/render/latex.py
import logging
import re
from pathlib import Path
from typing import Any, List

from voicenotes.normalizers import stringify
from voicenotes.types import CategorizedRecord

log = logging.getLogger(__name__)

PREAMBLE = r"""\documentclass{article}
\usepackage{geometry}
\usepackage{enumitem}
\usepackage{hyperref}
\usepackage{xcolor}
\usepackage{titlesec}
\usepackage{fancyhdr}
\usepackage{booktabs}
\geometry{margin=1in}
\titleformat{\section}{\normalfont\Large\bfseries}{\thesection}{1em}{}
\pagestyle{fancy}
\fancyhf{}
\renewcommand{\headrulewidth}{0pt}
\fancyfoot[C]{\thepage}
\begin{document}

"""

# (label, keys tried in order)
METADATA_ROWS = [
    ("Type", ("Type",)),
    ("Duration", ("Duration",)),
    ("AI Cost", ("AI Cost", "At Cost")),
    ("Date", ("Date",)),
    ("Icon", ("Icon",)),
]

# Document order of the body sections
LIST_SECTIONS_BEFORE_ARGUMENTS = ("Main Points", "Action Items", "Follow-up Questions")
LIST_SECTIONS_AFTER_ARGUMENTS = ("References", "Stories")

_SPECIAL = re.compile(r"([\\&%$#_{}~^])")
_REPLACEMENTS = {
    "\\": r"\textbackslash{}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def escape(text: str) -> str:
    """Escape LaTeX special characters in free text."""
    return _SPECIAL.sub(lambda m: _REPLACEMENTS.get(m.group(1), "\\" + m.group(1)), text)


def _text(v: Any) -> str:
    return escape(stringify(v))


def _itemize(items: List[Any]) -> List[str]:
    out = ["\\begin{itemize}[leftmargin=*]"]
    out += [f"  \\item {_text(item)}" for item in items]
    out.append("\\end{itemize}")
    out.append("")
    return out


def _list_section(name: str, value: Any) -> List[str]:
    items = value if isinstance(value, list) else [value]
    return [f"\\section{{{name}}}"] + _itemize(items)


def _arguments_section(value: Any) -> List[str]:
    out = ["\\section{Arguments}"]
    if isinstance(value, dict):
        for title, body in value.items():
            out.append(f"\\subsection*{{{escape(str(title))}}}")
            out.append(_text(body))
            out.append("")
    elif isinstance(value, list):
        out += _itemize(value)
    else:
        out.append(_text(value))
        out.append("")
    return out


def render(record: CategorizedRecord) -> str:
    """
    Render a categorized record as a LaTeX article.

    Layout is fixed regardless of key order: title block (from Summary),
    metadata table, Main Points, Action Items, Follow-up Questions,
    Arguments, References, Stories, Sentiment. Keys outside this set
    are not shown.
    """
    lines: List[str] = []

    if "Summary" in record:
        lines += [
            f"\\title{{{_text(record['Summary'])}}}",
            "\\author{Generated by AI Analysis}",
            "\\date{\\today}",
            "\\maketitle",
            "",
        ]

    lines += ["\\section*{Metadata}", "\\begin{tabular}{ll}", "\\toprule"]
    for label, keys in METADATA_ROWS:
        key = next((k for k in keys if k in record), None)
        if key is not None:
            lines.append(f"{label} & {_text(record[key])} \\\\")
    lines += ["\\bottomrule", "\\end{tabular}", ""]

    for name in LIST_SECTIONS_BEFORE_ARGUMENTS:
        if name in record:
            lines += _list_section(name, record[name])
    if "Arguments" in record:
        lines += _arguments_section(record["Arguments"])
    for name in LIST_SECTIONS_AFTER_ARGUMENTS:
        if name in record:
            lines += _list_section(name, record[name])
    if "Sentiment" in record:
        lines += ["\\section{Sentiment}", _text(record["Sentiment"]), ""]

    return PREAMBLE + "\n".join(lines) + "\n\\end{document}\n"


def save_document(text: str, path: str | Path) -> Path:
    """Write the document, replacing any existing file. Unencodable characters become '?'."""
    p = Path(path)
    p.write_text(text, encoding="utf-8", errors="replace")
    log.info("LaTeX saved to: %s", p)
    return p


def compile_command(path: str | Path) -> str:
    """Suggested command to turn the document into a PDF (never run here)."""
    return f"pdflatex {path}"
