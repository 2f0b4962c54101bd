import io
from dataclasses import dataclass, field
from pathlib import Path


class UnsupportedFileType(ValueError):
    pass


@dataclass
class ExtractedText:
    text: str
    source: str  # pdf|docx|txt
    pages: int | None = None
    meta: dict = field(default_factory=dict)


def extract_txt(data: bytes) -> ExtractedText:
    return ExtractedText(text=data.decode("utf-8", errors="ignore"), source="txt")


def extract_docx(data: bytes) -> ExtractedText:
    from docx import Document as Docx

    d = Docx(io.BytesIO(data))
    parts = []
    for para in d.paragraphs:
        if para.text.strip():
            parts.append(para.text)
    return ExtractedText(text="\n".join(parts), source="docx")


def extract_pdf(data: bytes) -> ExtractedText:
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(data))
    parts = []
    for page in reader.pages:
        t = page.extract_text() or ""
        if t.strip():
            parts.append(t)
    return ExtractedText(text="\n\n".join(parts), source="pdf", pages=len(reader.pages))


def extract_text(filename: str, data: bytes) -> ExtractedText:
    """Plain text of an uploaded file, picked by extension."""
    name = Path(filename or "upload").name
    suffix = Path(name).suffix.lower()
    if suffix == ".pdf":
        out = extract_pdf(data)
    elif suffix == ".docx":
        out = extract_docx(data)
    elif suffix in (".txt", ".md"):
        out = extract_txt(data)
    else:
        raise UnsupportedFileType(f"Unsupported file type: {suffix or name}")
    out.meta["original_name"] = name
    return out
