"""
Privacy scrubbing for free-text listing fields.

Listing descriptions routinely carry the advertiser's phone number, e-mail
address and brokerage blurb. Everything here is a pure function of its input;
a scrub pass is repeated until the text stops changing, so scrubbing already
scrubbed text is a no-op.
"""

import re
from typing import List

from extraction.core.property_record import PropertyRecord

EMAIL_RE = re.compile(r'[\w.+-]+@[\w-]+(?:\.[\w-]+)+', re.IGNORECASE)

PHONE_PATTERNS = [
    # Panamanian style and bare 8-digit groupings: +507 6666-7777, 6666 7777, 66667777
    re.compile(r'(?<!\d)(?:\+\d{1,3}[\s.-]?)?\d{4}[\s.-]?\d{4}(?!\d)'),
    # International and North American style: +1 (555) 123-4567, 555.123.4567
    re.compile(r'(?<!\d)(?:\+\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3,4}[\s.-]?\d{4}(?!\d)'),
]

SOCIAL_HANDLE_RE = re.compile(r'(?<![\w.])@[\w.]+')

CONTACT_PHRASES = [
    r'Para m[áa]s informaci[oó]n',
    r'For more information',
    r'Contact me',
    r'Cont[áa]ctame',
    r'Cont[áa]ctenos',
    r'Ll[áa]mame',
    r'Agenda tu cita',
    r'Schedule a visit',
    r'Interesados?',
    r'Interested',
    r'Hablemos',
    r"Let's talk",
]
CONTACT_PHRASE_RE = re.compile(
    r'\b(?:' + '|'.join(CONTACT_PHRASES) + r')[^.!?\n]*[.!?]?', re.IGNORECASE
)

COMPANY_NAMES = [
    'RE/MAX', 'REMAX', 'Century 21', 'Engel & Völkers', "Sotheby's",
    'Coldwell Banker', 'Keller Williams', 'Berkshire Hathaway',
    'Inmobiliaria', 'Real Estate', 'Bienes Raíces', 'Realty', 'Properties',
    'Servicios Inmobiliarios', 'Grupo Inmobiliario', 'Asesores', 'Realtor',
    'Corredor', 'Broker',
]
COMPANY_RE = re.compile(
    r'(?<!\w)(?:' + '|'.join(re.escape(name) for name in COMPANY_NAMES) + r')(?!\w)',
    re.IGNORECASE
)
# "ERA" is also a common Spanish word, so the brand only matches in capitals
CASE_SENSITIVE_COMPANY_RE = re.compile(r'(?<!\w)ERA(?!\w)')

SENTENCE_SPLIT_RE = re.compile(r'(?<=[.!?])\s+')

_MAX_PASSES = 10


def scrub_private_info(text: str) -> str:
    """
    Remove phone numbers, e-mail addresses, contact call-to-actions, social
    handles and any sentence naming a real-estate company.

    Args:
        text: Free text (title or description)

    Returns:
        The scrubbed text; falsy input is returned unchanged
    """
    if not text:
        return text

    current = text
    for _ in range(_MAX_PASSES):
        scrubbed = _scrub_pass(current)
        if scrubbed == current:
            break
        current = scrubbed
    return current


def _scrub_pass(text: str) -> str:
    cleaned = EMAIL_RE.sub(' ', text)
    for pattern in PHONE_PATTERNS:
        cleaned = pattern.sub(' ', cleaned)
    cleaned = CONTACT_PHRASE_RE.sub(' ', cleaned)
    cleaned = SOCIAL_HANDLE_RE.sub(' ', cleaned)

    lines: List[str] = []
    for line in cleaned.split('\n'):
        sentences = [
            sentence for sentence in SENTENCE_SPLIT_RE.split(line)
            if not (COMPANY_RE.search(sentence) or CASE_SENSITIVE_COMPANY_RE.search(sentence))
        ]
        line = _normalize_spacing(' '.join(sentences))
        if line:
            lines.append(line)
    return '\n'.join(lines)


def _normalize_spacing(line: str) -> str:
    line = re.sub(r'[ \t\r\f\v]+', ' ', line)
    line = re.sub(r'\s+([,.;:!?])', r'\1', line)
    line = re.sub(r'([,;:])(?:\s*[,;:])+', r'\1', line)
    return line.strip(' ,;:')


def scrub_record(record: PropertyRecord) -> PropertyRecord:
    """Return a copy of ``record`` with title and description scrubbed."""
    return record.copy_with(
        title=scrub_private_info(record.title),
        description=scrub_private_info(record.description),
    )
