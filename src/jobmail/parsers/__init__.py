from .message import extract_body, extract_headers, extract_message_content
from .utils import clean_text, decode_b64, html_to_text

__all__ = [
    "clean_text",
    "decode_b64",
    "extract_body",
    "extract_headers",
    "extract_message_content",
    "html_to_text",
]
