"""
HTML report assembly for the surgical outcomes analysis
"""

import html
import os
from datetime import datetime

import pandas as pd

from .evaluator import UNDEFINED

STYLE = """
body { font-family: Helvetica, Arial, sans-serif; margin: 2em auto; max-width: 1100px; color: #222; }
h1 { border-bottom: 2px solid #444; padding-bottom: 0.3em; }
h2 { margin-top: 2em; color: #2c4a6e; }
table.dataframe { border-collapse: collapse; margin: 1em 0; font-size: 0.9em; }
table.dataframe th, table.dataframe td { border: 1px solid #ccc; padding: 4px 8px; text-align: right; }
table.dataframe th { background: #f0f3f7; }
img { max-width: 100%; margin: 1em 0; }
p.meta { color: #666; font-size: 0.9em; }
"""


def format_value(value, digits=3):
    """Render one table cell; undefined metrics are spelled out"""
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, float):
        if pd.isna(value):
            return ''
        return f"{value:.{digits}f}"
    return str(value)


class ReportBuilder:
    """Collects paragraphs, tables and figures into a single HTML document"""

    def __init__(self, title="Surgical Outcomes Risk Report"):
        self.title = title
        self.sections = []

    def add_section(self, heading):
        self.sections.append((heading, []))
        return self

    def _current(self):
        if not self.sections:
            self.add_section('')
        return self.sections[-1][1]

    def add_paragraph(self, text):
        self._current().append(f"<p>{html.escape(text)}</p>")
        return self

    def add_table(self, df, caption=None, index=False, digits=3):
        formatted = df.apply(lambda column: column.map(lambda value: format_value(value, digits)))
        if caption:
            self._current().append(f"<h3>{html.escape(caption)}</h3>")
        self._current().append(formatted.to_html(index=index, escape=True, border=0))
        return self

    def add_figure(self, image_path, caption=None, relative_to=None):
        """Link an image, relative to the report's directory when one is given"""
        src = os.path.relpath(image_path, relative_to) if relative_to else image_path
        src = src.replace(os.sep, '/')
        alt = html.escape(caption or os.path.basename(image_path))
        self._current().append(f'<img src="{html.escape(src)}" alt="{alt}">')
        if caption:
            self._current().append(f"<p><em>{html.escape(caption)}</em></p>")
        return self

    def render(self):
        parts = [
            "<!DOCTYPE html>",
            "<html lang=\"en\">",
            "<head>",
            "<meta charset=\"utf-8\">",
            f"<title>{html.escape(self.title)}</title>",
            f"<style>{STYLE}</style>",
            "</head>",
            "<body>",
            f"<h1>{html.escape(self.title)}</h1>",
            f"<p class=\"meta\">Generated {datetime.now():%Y-%m-%d %H:%M}</p>",
        ]
        for heading, blocks in self.sections:
            if heading:
                parts.append(f"<h2>{html.escape(heading)}</h2>")
            parts.extend(blocks)
        parts.extend(["</body>", "</html>"])
        return "\n".join(parts)

    def write(self, path):
        directory = os.path.dirname(os.fspath(path))
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding='utf-8') as f:
            f.write(self.render())
        print(f"Report written to {path}")
        return path
