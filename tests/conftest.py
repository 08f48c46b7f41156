"""Shared pytest fixtures for the PlugRAG ingestion test suite."""

from __future__ import annotations

import io

import docx
import fitz
import pytest

from plugrag.interfaces.tokenizer import ITokenCounter
from plugrag.models.options import ProcessingOptions

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class WordTokenCounter(ITokenCounter):
    """Deterministic tokenizer: one token per whitespace-delimited word."""

    def count_tokens(self, text: str) -> int:
        return len(text.split())

    def get_name(self) -> str:
        return "whitespace"


@pytest.fixture
def word_counter() -> WordTokenCounter:
    return WordTokenCounter()


@pytest.fixture
def default_options() -> ProcessingOptions:
    return ProcessingOptions()


# ---------------------------------------------------------------------------
# Sample texts
# ---------------------------------------------------------------------------


@pytest.fixture
def scenario_text() -> str:
    """Two short sentences repeated to 1500 words."""
    return "Paragraph one text. Paragraph two text. " * 250


@pytest.fixture
def sample_markdown() -> str:
    return (
        "# Getting Started\n"
        "\n"
        "PlugRAG turns your documents into a chatbot knowledge base.\n"
        "Upload a file or paste a URL to begin.\n"
        "\n"
        "## Supported formats\n"
        "\n"
        "- PDF documents\n"
        "- Word files\n"
        "- Plain text and Markdown\n"
        "\n"
        "| Format | Max size |\n"
        "| ------ | -------- |\n"
        "| PDF    | 50 MB    |\n"
        "\n"
        "```python\n"
        "# not a heading\n"
        "print('hello')\n"
        "```\n"
        "\n"
        "Limits\n"
        "------\n"
        "\n"
        "Files larger than 50 MB are rejected.\n"
    )


@pytest.fixture
def sample_html() -> bytes:
    return b"""<!DOCTYPE html>
<html lang="en">
<head>
  <title>Shipping Policy</title>
  <meta property="og:title" content="Shipping Policy - Example Store">
  <meta name="description" content="How and when we ship orders.">
  <meta name="author" content="Support Team">
  <meta property="article:published_time" content="2024-03-01T09:00:00Z">
  <style>body { color: red; }</style>
  <script>var tracking = "do not index";</script>
</head>
<body>
  <nav><a href="/home">Home</a> <a href="/about">About</a></nav>
  <div class="ad">Buy now! Limited offer.</div>
  <main>
    <h1>Shipping Policy</h1>
    <p>Orders placed before noon ship the same business day from our warehouse.
       See the <a href="/returns" title="Returns">returns page</a> for details.</p>
    <h2>Delivery times</h2>
    <ul>
      <li>Standard: 3 to 5 days</li>
      <li>Express: 1 to 2 days</li>
    </ul>
    <table>
      <caption>Rates</caption>
      <tr><th>Method</th><th>Price</th></tr>
      <tr><td>Standard</td><td>Free</td></tr>
    </table>
    <p>Questions? Visit <a href="https://help.example.org/contact">our help center</a>
       or read the <a href="/returns#faq">returns FAQ</a>.</p>
  </main>
  <footer>Copyright 2024 Example Store</footer>
</body>
</html>
"""


@pytest.fixture
def sample_csv() -> bytes:
    return b"name,role,city\nAlice,Engineer,Berlin\nBob,Designer,Lisbon\nCara,Manager,Oslo\n"


# ---------------------------------------------------------------------------
# Binary documents built with the real parser libraries
# ---------------------------------------------------------------------------


@pytest.fixture
def pdf_bytes() -> bytes:
    """A three-page PDF whose middle page has no text."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Quarterly report for the operations team", fontsize=12)
    doc.new_page()
    page = doc.new_page()
    page.insert_text((72, 72), "Revenue grew in every region this quarter", fontsize=12)
    doc.set_metadata({"title": "Q3 Report", "author": "Finance"})
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def docx_bytes() -> bytes:
    document = docx.Document()
    document.core_properties.title = "Employee Handbook"
    document.core_properties.author = "HR"
    document.add_heading("Employee Handbook", level=0)
    document.add_heading("Time off", level=1)
    document.add_paragraph("Full-time employees accrue two days of leave per month.")
    document.add_paragraph("Request leave in the portal", style="List Bullet")
    document.add_paragraph("Wait for manager approval", style="List Bullet")
    document.add_heading("Equipment", level=2)
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Item"
    table.cell(0, 1).text = "Budget"
    table.cell(1, 0).text = "Laptop"
    table.cell(1, 1).text = "1500"
    document.add_paragraph("Return equipment on your last day.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
