"""
Resume file handling for ApplyTrack.

Extracts text from resume files (PDF, DOCX, plain text), loads job
descriptions (plain text or HTML), and rewrites resumes through a local
Ollama chat model.
"""

import re
from pathlib import Path
from typing import Optional

import html2text
import ollama
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import get_config_manager

console = Console()

ENHANCE_SYSTEM_PROMPT = (
    "You are an expert resume writer. Your task is to enhance the resume while "
    "maintaining its core content and structure. Focus on improving clarity, impact, "
    "and professional language. Return ONLY the enhanced resume text without any "
    "commentary or explanations."
)

ENHANCE_USER_PROMPT = (
    "Professionally enhance this resume, focusing on clarity, impact, and ATS optimization:\n\n{resume}"
)


class ResumeTextExtractor:
    """Validates resume files and extracts their text content."""

    SUPPORTED_EXTENSIONS = {'.pdf', '.txt', '.md', '.docx'}
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB limit

    def validate_file(self, path: Path) -> Optional[str]:
        """Validate resume file. Returns error message if invalid, None if valid."""
        if not path.exists():
            return f"File does not exist: {path}"

        if not path.is_file():
            return f"Path is not a file: {path}"

        if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
            return f"Unsupported file type: {path.suffix}. Supported: {', '.join(sorted(self.SUPPORTED_EXTENSIONS))}"

        file_size = path.stat().st_size
        if file_size > self.MAX_FILE_SIZE:
            return f"File too large: {file_size / (1024*1024):.1f}MB (max: {self.MAX_FILE_SIZE / (1024*1024):.1f}MB)"

        if file_size == 0:
            return "File is empty"

        return None

    def extract_text(self, file_path: str) -> str:
        """Extract cleaned text from a resume file; raises ValueError if invalid."""
        path = Path(file_path)

        validation_error = self.validate_file(path)
        if validation_error:
            raise ValueError(validation_error)

        file_extension = path.suffix.lower()
        if file_extension == '.pdf':
            text = self._extract_pdf_text(path)
        elif file_extension == '.docx':
            text = self._extract_docx_text(path)
        else:
            text = read_text_file(path)

        return clean_extracted_text(text)

    def _extract_pdf_text(self, path: Path) -> str:
        """Extract text from PDF file using PyPDF2."""
        import PyPDF2

        text_content = []
        with open(path, 'rb') as file:
            pdf_reader = PyPDF2.PdfReader(file)

            for page_num, page in enumerate(pdf_reader.pages):
                try:
                    page_text = page.extract_text() or ""
                except Exception as e:
                    console.print(f"[yellow]Warning: Could not extract text from page {page_num + 1}: {e}[/yellow]")
                    continue
                if page_text.strip():
                    text_content.append(page_text)

        return '\n\n'.join(text_content)

    def _extract_docx_text(self, path: Path) -> str:
        """Extract text from DOCX file using python-docx."""
        from docx import Document

        doc = Document(str(path))
        text_content = []

        for paragraph in doc.paragraphs:
            text = paragraph.text.strip()
            if text:
                text_content.append(text)

        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_content.append(' | '.join(row_text))

        return '\n'.join(text_content)


def read_text_file(path: Path) -> str:
    """Read a text file, trying a few common encodings."""
    for encoding in ('utf-8', 'cp1252', 'latin-1'):
        try:
            with open(path, 'r', encoding=encoding) as file:
                return file.read()
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Could not decode {path} with any supported encoding")


def clean_extracted_text(text: str) -> str:
    """Normalize whitespace and fix common PDF extraction artifacts."""
    # "on- time" -> "on-time"
    text = re.sub(r'(\w+)\s*-\s+(\w+)', r'\1-\2', text)

    # Spaces before punctuation
    text = re.sub(r'[ \t]+([.,;:!?])', r'\1', text)

    lines = []
    for line in text.split('\n'):
        cleaned_line = ' '.join(line.split())
        if cleaned_line:
            lines.append(cleaned_line)

    return '\n'.join(lines).strip()


def html_to_text(html: str) -> str:
    """Convert an HTML job posting to readable text."""
    h = html2text.HTML2Text()
    h.ignore_links = True
    h.body_width = 0  # Don't wrap lines
    return h.handle(html).strip()


def load_job_description(value: str) -> str:
    """
    Load a job description from a file path or take it as literal text.

    .html/.htm files are converted to text; other existing files are read
    as plain text. Anything that is not a file is returned unchanged.
    """
    path = Path(value)
    try:
        is_file = path.is_file()
    except OSError:
        is_file = False

    if not is_file:
        return value

    content = read_text_file(path)
    if path.suffix.lower() in ('.html', '.htm'):
        return html_to_text(content)
    return content


class ResumeEnhancer:
    """Rewrites resume text with a local Ollama chat model."""

    def __init__(self, host: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[int] = None, client=None):
        config = get_config_manager()

        if host is None:
            host = f"http://{config.get('ollama', 'host')}:{config.get('ollama', 'port')}"
        if model is None:
            model = config.get('ollama', 'model')
        if timeout is None:
            timeout = config.get('ollama', 'timeout')
        self.host = host
        self.model = model
        self.timeout = timeout
        self.client = client or ollama.Client(host=host, timeout=timeout)

    def enhance(self, resume_text: str) -> str:
        """Return an enhanced version of the resume text."""
        if not resume_text or not resume_text.strip():
            raise ValueError("Resume text is required")

        console.print(f"[dim]Sending resume text to {self.model}, length: {len(resume_text)}[/dim]")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Enhancing resume with {self.model}", total=None)

            try:
                response = self.client.chat(
                    model=self.model,
                    messages=[
                        {'role': 'system', 'content': ENHANCE_SYSTEM_PROMPT},
                        {'role': 'user', 'content': ENHANCE_USER_PROMPT.format(resume=resume_text)},
                    ],
                    options={'temperature': 0.7},
                )
            except ollama.ResponseError as e:
                raise RuntimeError(f"Ollama error: {e.error}") from e
            except Exception as e:
                raise RuntimeError(f"Ollama request failed: {e}") from e

        content = (response.get('message') or {}).get('content') if response else None
        if not content:
            raise RuntimeError("Invalid response from Ollama")

        return content.strip()


def get_resume_enhancer() -> ResumeEnhancer:
    """Get resume enhancer configured from settings."""
    return ResumeEnhancer()
