"""Regex-based extraction of Algerian legal entities.

Finds dates, act numbers, institutions, legal references, subjects and
amounts in French and Arabic Journal Officiel texts, then derives the
document type, title, main number/date and article structure.
"""

import re
from dataclasses import dataclass, field
from datetime import date

from dzocr.language.detector import LanguageDetector
from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

AR = "ء-ي"

FRENCH_MONTHS: dict[str, int] = {
    "janvier": 1,
    "février": 2,
    "fevrier": 2,
    "mars": 3,
    "avril": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7,
    "août": 8,
    "aout": 8,
    "septembre": 9,
    "octobre": 10,
    "novembre": 11,
    "décembre": 12,
    "decembre": 12,
}

# Maghreb and Middle-East names of the Gregorian months.
ARABIC_MONTHS: dict[str, int] = {
    "جانفي": 1,
    "يناير": 1,
    "فيفري": 2,
    "فبراير": 2,
    "مارس": 3,
    "أفريل": 4,
    "أبريل": 4,
    "ماي": 5,
    "مايو": 5,
    "جوان": 6,
    "يونيو": 6,
    "جويلية": 7,
    "يوليو": 7,
    "أوت": 8,
    "غشت": 8,
    "أغسطس": 8,
    "سبتمبر": 9,
    "أكتوبر": 10,
    "نوفمبر": 11,
    "ديسمبر": 12,
}

_FR_MONTH = "|".join(FRENCH_MONTHS)
_AR_MONTH = "|".join(sorted(ARABIC_MONTHS, key=len, reverse=True))
_HIJRI_FR = (
    r"Moharram|Muharram|Safar|Rabie\s+El\s+Aouel|Rabie\s+El\s+Thani|Rabie\s+Ethani"
    r"|Djoumada\s+El\s+Oula|Djoumada\s+Ethania|Djoumada\s+El\s+Thania|Radjab|Rajab"
    r"|Chaâbane|Chaabane|Ramadhan|Ramadan|Chaoual|Chaouel"
    r"|Dhou\s+El\s+Kaâda|Dhou\s+El\s+Kaada|Dhou\s+El\s+Hidja"
)
_HIJRI_AR = (
    "محرم|صفر|ربيع الأول|ربيع الثاني|جمادى الأولى|جمادى الثانية|رجب|شعبان"
    "|رمضان|شوال|ذو القعدة|ذي القعدة|ذو الحجة|ذي الحجة"
)
_NUM = r"(\d{1,4}(?:\s?[-/]\s?\d{1,4}){0,2})"
_NO = r"n\s*[°ºo]\.?\s*"

# Pattern definitions: (regex, base_confidence, flags)
_DATE_PATTERNS: list[tuple[str, float, int]] = [
    (rf"\b(\d{{1,2}})(?:er)?\s+({_FR_MONTH})\s+(\d{{4}})\b", 0.95, re.IGNORECASE),
    (r"(?<![\d/.-])(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})(?![\d/.-])", 0.85, 0),
    (r"(?<![\d/.-])(\d{4})-(\d{2})-(\d{2})(?![\d/.-])", 0.85, 0),
    (rf"(\d{{1,2}})\s+({_AR_MONTH})\s+(?:سنة\s+|عام\s+)?(\d{{4}})", 0.9, 0),
    (rf"\b(\d{{1,2}})\s+({_HIJRI_FR})\s+(\d{{4}})\b", 0.8, re.IGNORECASE),
    (rf"(\d{{1,2}})\s+({_HIJRI_AR})\s+(?:عام\s+|سنة\s+)?(\d{{4}})", 0.8, 0),
]

# Number definitions: (regex, act_type, base_confidence, flags)
_NUMBER_PATTERNS: list[tuple[str, str, float, int]] = [
    (rf"\bLoi\s+(?:organique\s+)?{_NO}{_NUM}", "loi", 0.95, re.IGNORECASE),
    (rf"\bOrdonnance\s+{_NO}{_NUM}", "ordonnance", 0.95, re.IGNORECASE),
    (
        rf"\bD[ée]cret\s+(?:ex[ée]cutif\s+|pr[ée]sidentiel\s+|l[ée]gislatif\s+)?{_NO}{_NUM}",
        "decret",
        0.95,
        re.IGNORECASE,
    ),
    (
        rf"\bArr[êe]t[ée]\s+(?:interminist[ée]riel\s+|minist[ée]riel\s+)?{_NO}{_NUM}",
        "arrete",
        0.9,
        re.IGNORECASE,
    ),
    (rf"\bCirculaire\s+(?:minist[ée]rielle\s+)?{_NO}{_NUM}", "circulaire", 0.9, re.IGNORECASE),
    (rf"\bInstruction\s+(?:minist[ée]rielle\s+)?{_NO}{_NUM}", "instruction", 0.9, re.IGNORECASE),
    (rf"\bD[ée]cision\s+{_NO}{_NUM}", "decision", 0.85, re.IGNORECASE),
    (rf"قانون\s+(?:عضوي\s+)?رقم\s*{_NUM}", "loi", 0.95, 0),
    (rf"(?<![{AR}])أمر\s+رقم\s*{_NUM}", "ordonnance", 0.95, 0),
    (rf"مرسوم\s+(?:تنفيذي\s+|رئاسي\s+|تشريعي\s+)?رقم\s*{_NUM}", "decret", 0.95, 0),
    (
        rf"قرار\s+(?:وزاري\s+مشترك\s+|وزاري\s+|ولائي\s+|والي\s+)?رقم\s*{_NUM}",
        "arrete",
        0.9,
        0,
    ),
    (rf"منشور\s+(?:وزاري\s+)?رقم\s*{_NUM}", "circulaire", 0.9, 0),
    (rf"تعليمة\s+(?:وزارية\s+)?(?:مشتركة\s+)?رقم\s*{_NUM}", "instruction", 0.9, 0),
    (rf"مقرر\s+رقم\s*{_NUM}", "decision", 0.85, 0),
]

_FR_NAME_TAIL = r"[A-Za-zÀ-ÿ'’\- ]{3,60}?(?=\s*(?:[,.;:\n]|$))"
_INSTITUTION_PATTERNS: list[tuple[str, float, int]] = [
    (r"\bPr[ée]sidence\s+de\s+la\s+R[ée]publique\b", 0.95, re.IGNORECASE),
    (r"\bPremier\s+minist[èe]re\b", 0.9, re.IGNORECASE),
    (
        rf"\bMinist[èe]re\s+(?:de\s+l['’]|de\s+la\s+|des\s+|du\s+|de\s+){_FR_NAME_TAIL}",
        0.9,
        re.IGNORECASE | re.MULTILINE,
    ),
    (r"\bAssembl[ée]e\s+populaire\s+nationale\b", 0.95, re.IGNORECASE),
    (r"\bConseil\s+de\s+la\s+nation\b", 0.95, re.IGNORECASE),
    (
        r"\b(?:Cour\s+constitutionnelle|Conseil\s+constitutionnel|Cour\s+supr[êe]me"
        r"|Conseil\s+d['’][ÉE]tat)\b",
        0.9,
        re.IGNORECASE,
    ),
    (
        r"\bAssembl[ée]e\s+populaire\s+(?:communale|de\s+wilaya)\b|\bAP[CW]\b",
        0.8,
        re.IGNORECASE,
    ),
    (rf"\bWilaya\s+(?:d['’]\s*|de\s+){_FR_NAME_TAIL}", 0.85, re.IGNORECASE | re.MULTILINE),
    (
        rf"\bDirection\s+(?:g[ée]n[ée]rale\s+)?(?:de\s+l['’]|de\s+la\s+|des\s+|du\s+){_FR_NAME_TAIL}",
        0.75,
        re.IGNORECASE | re.MULTILINE,
    ),
    ("رئاسة الجمهورية", 0.95, 0),
    ("الوزارة الأولى", 0.9, 0),
    (rf"(?<![{AR}])وزارة\s+[{AR}]+(?:\s+و[{AR}]+)?", 0.9, 0),
    ("المجلس الشعبي الوطني", 0.95, 0),
    ("مجلس الأمة", 0.95, 0),
    ("المحكمة الدستورية|المجلس الدستوري|المحكمة العليا|مجلس الدولة", 0.9, 0),
    (r"المجلس\s+الشعبي\s+(?:البلدي|الولائي)", 0.85, 0),
    (rf"(?<![{AR}])ولاية\s+[{AR}]+", 0.8, 0),
    (rf"المديرية\s+العامة\s+[{AR}]+", 0.75, 0),
]

_REFERENCE_PATTERNS: list[tuple[str, float, int]] = [
    (r"^[ \t]*Vu\s+(.+?)[ \t]*[;,.]?[ \t]*$", 0.85, re.IGNORECASE | re.MULTILINE),
    (
        r"\barticles?\s+(\d+(?:\s*(?:bis|ter))?(?:\s*(?:,|et|à)\s*\d+(?:\s*(?:bis|ter))?)*)",
        0.8,
        re.IGNORECASE,
    ),
    (r"^[ \t]*(?:و\s?)?(?:بمقتضى|بناء\s+على)\s+(.+?)[ \t]*[،؛.]?[ \t]*$", 0.85, re.MULTILINE),
    (r"الماد(?:ة|تين|تان)\s+(\d+(?:\s+مكرر)?(?:\s+و\s*\d+)?)", 0.8, 0),
]

_SUBJECT_PATTERNS: list[tuple[str, float, int]] = [
    (
        r"\b((?:portant|relatif\s+(?:à|aux?)|relative\s+(?:à|aux?)|fixant"
        r"|modifiant\s+et\s+compl[ée]tant|modifiant|compl[ée]tant)\s+[^\n]{5,200}?)"
        r"(?=\s*(?:[.;]|\n|$))",
        0.8,
        re.IGNORECASE,
    ),
    (
        r"((?:المتضمن|المتعلق\s+ب|يتضمن|يتعلق\s+ب|الذي\s+يحدد|يحدد)\s*[^\n]{5,200}?)"
        r"(?=\s*(?:[.،؛]|\n|$))",
        0.8,
        0,
    ),
]

_AMOUNT_PATTERNS: list[tuple[str, float, int]] = [
    (
        r"(\d{1,3}(?:[ .]\d{3})+(?:,\d{2})?|\d+(?:,\d{2})?)\s*"
        r"(?:DA|DZD|dinars?(?:\s+alg[ée]riens?)?)\b",
        0.9,
        re.IGNORECASE,
    ),
    (r"(\d{1,3}(?:[ .]\d{3})+(?:,\d{2})?|\d+(?:,\d{2})?)\s*(?:دج|دينار)", 0.9, 0),
]

_JO_NUMBER_PATTERNS: list[tuple[str, int]] = [
    (r"Journal\s+officiel[^\n]{0,80}?n\s*[°ºo]\.?\s*(\d{1,3})", re.IGNORECASE),
    (r"\bJORA\s*(?:n\s*[°ºo]\.?)?\s*(\d{1,3})", re.IGNORECASE),
    (r"الجريدة\s+الرسمية[^\n]{0,40}?(?:رقم|عدد|العدد)\s*(\d{1,3})", 0),
]

_ARTICLE_HEADER_RE = re.compile(
    r"^[ \t]*(?:Art(?:icle)?\.?\s*(1er|premier|\d+)(?:\s*(?:bis|ter))?"
    r"|المادة\s+(\d+|الأولى)(?:\s+مكرر)?)\s*[.:]?[ \t]*[\-–—]?[ \t]*",
    re.IGNORECASE | re.MULTILINE,
)
_REFERENCE_LINE_RE = re.compile(
    r"^\s*(?:Vu\b|(?:و\s?)?بمقتضى|(?:و\s?)?بناء\s+على)", re.IGNORECASE
)
_HEADER_LINE_RE = re.compile(
    r"r[ée]publique|minist[èe]re|journal\s+officiel|الجمهورية|وزارة|الجريدة\s+الرسمية",
    re.IGNORECASE,
)
_STATE_LINE_RE = re.compile(
    r"^\s*(?:R[ée]publique\s+alg[ée]rienne|الجمهورية\s+الجزائرية)", re.IGNORECASE
)
_SIGNATURE_RE = re.compile(r"^\s*(?:Fait\s+à|حرر\s+ب)", re.IGNORECASE | re.MULTILINE)
_HIJRI_RE = re.compile(f"{_HIJRI_FR}|{_HIJRI_AR}", re.IGNORECASE)

OFFICIAL_INDICATORS = (
    "république algérienne",
    "republique algerienne",
    "journal officiel",
    "jora",
    "présidence de la république",
    "الجمهورية الجزائرية",
    "الجريدة الرسمية",
    "رئاسة الجمهورية",
)

TYPE_WEIGHTS: dict[str, float] = {
    "date": 0.3,
    "number": 0.3,
    "institution": 0.2,
    "reference": 0.1,
    "subject": 0.1,
}

# Checked in order when no act number identifies the document.
_TYPE_KEYWORDS: list[tuple[str, str]] = [
    ("loi", r"\bloi\b|قانون"),
    ("ordonnance", r"\bordonnance\b|(?<![ء-ي])أمر(?![ء-ي])"),
    ("decret", r"\bd[ée]cret\b|مرسوم"),
    ("arrete", r"\barr[êe]t[ée]\b|قرار"),
    ("circulaire", r"\bcirculaire\b|منشور"),
    ("instruction", r"\binstruction\b|تعليمة"),
]

DEFAULT_TITLE = "Document juridique algérien"
REFERENCE_PENALTY = 0.7


@dataclass
class LegalEntity:
    """An entity found in a legal text."""

    type: str
    value: str
    original_text: str
    confidence: float
    start: int
    end: int
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def referenced(self) -> bool:
        """True when the entity sits in a ``Vu ...`` / ``بمقتضى`` visa line."""
        return bool(self.metadata.get("referenced", False))


@dataclass
class Article:
    """One article of a legal act."""

    number: str
    text: str
    start: int


@dataclass
class DocumentSection:
    """A structural part of the document: header, visas, body or signature."""

    kind: str
    content: str


@dataclass
class StructuredPublication:
    """Structured view of a legal publication."""

    text: str
    document_type: str
    title: str
    language: str
    entities: list[LegalEntity]
    number: str | None = None
    date: str | None = None
    institution: str | None = None
    subject: str | None = None
    jo_number: str | None = None
    jo_date: str | None = None
    articles: list[Article] = field(default_factory=list)
    sections: list[DocumentSection] = field(default_factory=list)
    is_official: bool = False
    confidence: float = 0.0

    def entities_of(self, entity_type: str) -> list[LegalEntity]:
        return [e for e in self.entities if e.type == entity_type]

    def to_dict(self) -> dict[str, object]:
        return {
            "document_type": self.document_type,
            "title": self.title,
            "language": self.language,
            "number": self.number,
            "date": self.date,
            "institution": self.institution,
            "subject": self.subject,
            "jo_number": self.jo_number,
            "jo_date": self.jo_date,
            "is_official": self.is_official,
            "confidence": round(self.confidence, 3),
            "articles": [{"number": a.number, "text": a.text} for a in self.articles],
            "entities": [
                {
                    "type": e.type,
                    "value": e.value,
                    "confidence": round(e.confidence, 3),
                    "start": e.start,
                    "end": e.end,
                    **e.metadata,
                }
                for e in self.entities
            ],
        }


def normalize_date(value: str) -> date | None:
    """Parse a Gregorian date written in French, Arabic or numeric form.

    Args:
        value: Date text such as ``1er mars 2020``, ``12 جانفي 2024``,
            ``12/01/2024`` or ``2024-01-12``.

    Returns:
        The parsed date, or ``None`` for Hijri or unparseable values.
    """
    text = value.strip()

    match = re.fullmatch(r"(\d{4})-(\d{1,2})-(\d{1,2})", text)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = re.fullmatch(r"(\d{1,2})(?:er)?\s*([/.\-]|\s)\s*(\S+?)\s*\2?\s*(\d{4})", text)
        if not match:
            return None
        day, year = int(match.group(1)), int(match.group(4))
        month_text = match.group(3).lower()
        if month_text.isdigit():
            month = int(month_text)
        else:
            month = FRENCH_MONTHS.get(month_text) or ARABIC_MONTHS.get(month_text, 0)

    try:
        return date(year, month, day)
    except ValueError:
        return None


def _reference_lines(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    offset = 0
    for line in text.split("\n"):
        if _REFERENCE_LINE_RE.match(line):
            spans.append((offset, offset + len(line)))
        offset += len(line) + 1
    return spans


def _dedupe(entities: list[LegalEntity]) -> list[LegalEntity]:
    """Keep the most confident entity among overlapping ones of a type."""
    kept: list[LegalEntity] = []
    for entity in sorted(entities, key=lambda e: (-e.confidence, e.start)):
        if not any(
            k.type == entity.type and entity.start < k.end and k.start < entity.end
            for k in kept
        ):
            kept.append(entity)
    return sorted(kept, key=lambda e: (e.start, e.type))


class LegalEntityExtractor:
    """Extracts structured legal information from corrected OCR text.

    Args:
        detector: Language detector for the publication language.
    """

    def __init__(self, detector: LanguageDetector | None = None) -> None:
        self.detector = detector or LanguageDetector()
        self.patterns: dict[str, list[tuple[str, float, int]]] = {
            "date": _DATE_PATTERNS,
            "institution": _INSTITUTION_PATTERNS,
            "reference": _REFERENCE_PATTERNS,
            "subject": _SUBJECT_PATTERNS,
            "amount": _AMOUNT_PATTERNS,
        }

    def extract_entities(self, text: str) -> list[LegalEntity]:
        """Find all entities in a text.

        Entities inside visa lines (``Vu ...``, ``بمقتضى ...``) cite other
        acts; they are flagged as referenced and their confidence lowered.

        Args:
            text: Corrected document text.

        Returns:
            Non-overlapping entities ordered by position.
        """
        found: list[LegalEntity] = []

        for entity_type, patterns in self.patterns.items():
            for pattern, confidence, flags in patterns:
                for match in re.finditer(pattern, text, flags):
                    value = match.group(1) if match.groups() else match.group(0)
                    metadata: dict[str, object] = {}
                    if entity_type == "date":
                        value = match.group(0)
                        parsed = normalize_date(value)
                        metadata["iso"] = parsed.isoformat() if parsed else None
                        metadata["calendar"] = (
                            "hijri" if _HIJRI_RE.search(value) else "gregorian"
                        )
                    found.append(
                        LegalEntity(
                            type=entity_type,
                            value=value.strip(),
                            original_text=match.group(0),
                            confidence=confidence,
                            start=match.start(),
                            end=match.end(),
                            metadata=metadata,
                        )
                    )

        for pattern, act_type, confidence, flags in _NUMBER_PATTERNS:
            for match in re.finditer(pattern, text, flags):
                found.append(
                    LegalEntity(
                        type="number",
                        value=re.sub(r"\s+", "", match.group(1)),
                        original_text=match.group(0),
                        confidence=confidence,
                        start=match.start(),
                        end=match.end(),
                        metadata={"act_type": act_type},
                    )
                )

        reference_spans = _reference_lines(text)
        for entity in found:
            if entity.type == "reference":
                continue
            if any(start <= entity.start < end for start, end in reference_spans):
                entity.metadata["referenced"] = True
                entity.confidence = round(entity.confidence * REFERENCE_PENALTY, 3)

        entities = _dedupe(found)
        logger.info("Legal entity extraction found %d entities", len(entities))
        return entities

    def extract(self, text: str) -> StructuredPublication:
        """Build the structured publication for a document text.

        Args:
            text: Corrected document text.

        Returns:
            Structured publication with entities, main fields and articles.
        """
        entities = self.extract_entities(text)
        language = self.detector.detect(text).language.value

        main_number = self._main_entity(entities, "number")
        main_date = self._document_date(text, entities, main_number)
        institution = self._main_entity(entities, "institution")
        subject = self._main_entity(entities, "subject")
        jo_number, jo_date = self._journal_reference(text, entities)

        publication = StructuredPublication(
            text=text,
            document_type=self.classify(text, entities),
            title=self._title(text, main_number),
            language=language,
            entities=entities,
            number=main_number.value if main_number else None,
            date=main_date.value if main_date else None,
            institution=institution.value if institution else None,
            subject=subject.value if subject else None,
            jo_number=jo_number,
            jo_date=jo_date,
            articles=self.split_articles(text),
            sections=self.split_sections(text),
            is_official=self.is_official(text),
            confidence=self.score(entities),
        )
        logger.info(
            "Publication: type=%s number=%s date=%s confidence=%.2f",
            publication.document_type,
            publication.number,
            publication.date,
            publication.confidence,
        )
        return publication

    def classify(self, text: str, entities: list[LegalEntity]) -> str:
        """Determine the document type.

        A Journal Officiel issue carries several acts of its own; a single
        act is typed by its own number; otherwise keywords decide.
        """
        own_acts = [e for e in entities if e.type == "number" and not e.referenced]
        head = text[:600]
        if re.search(r"journal\s+officiel|الجريدة\s+الرسمية", head, re.IGNORECASE) and (
            len(own_acts) != 1
        ):
            return "journal_officiel"
        if own_acts:
            return str(own_acts[0].metadata["act_type"])
        for doc_type, pattern in _TYPE_KEYWORDS:
            if re.search(pattern, text, re.IGNORECASE):
                return doc_type
        return "other"

    def split_articles(self, text: str) -> list[Article]:
        """Split the body into articles on ``Article N`` / ``المادة N`` headers."""
        headers = list(_ARTICLE_HEADER_RE.finditer(text))
        articles: list[Article] = []
        for i, header in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            number = header.group(1) or header.group(2)
            if number.lower() in ("1er", "premier", "الأولى"):
                number = "1"
            body = text[header.end() : end]
            signature = _SIGNATURE_RE.search(body)
            if signature and i + 1 == len(headers):
                body = body[: signature.start()]
            articles.append(Article(number=number, text=body.strip(), start=header.start()))
        return articles

    def split_sections(self, text: str) -> list[DocumentSection]:
        """Group lines into header, visas, body and signature sections."""
        lines = text.split("\n")
        header: list[str] = []
        visas: list[str] = []
        body: list[str] = []
        signature: list[str] = []

        for i, line in enumerate(lines):
            if not line.strip():
                continue
            if signature or _SIGNATURE_RE.match(line):
                signature.append(line)
            elif i < 10 and not body and not visas and _HEADER_LINE_RE.search(line):
                header.append(line)
            elif _REFERENCE_LINE_RE.match(line):
                visas.append(line)
            else:
                body.append(line)

        sections = [
            DocumentSection(kind, "\n".join(content))
            for kind, content in (
                ("header", header),
                ("visas", visas),
                ("body", body),
                ("signature", signature),
            )
            if content
        ]
        return sections

    @staticmethod
    def is_official(text: str) -> bool:
        lowered = text.lower()
        return any(indicator in lowered for indicator in OFFICIAL_INDICATORS)

    @staticmethod
    def score(entities: list[LegalEntity]) -> float:
        """Weighted mean confidence of the entity families present."""
        total = 0.0
        for entity_type, weight in TYPE_WEIGHTS.items():
            confidences = [e.confidence for e in entities if e.type == entity_type]
            if confidences:
                total += weight * (sum(confidences) / len(confidences))
        return max(0.0, min(1.0, total))

    @staticmethod
    def _main_entity(entities: list[LegalEntity], entity_type: str) -> LegalEntity | None:
        candidates = [e for e in entities if e.type == entity_type]
        if not candidates:
            return None
        return max(candidates, key=lambda e: (not e.referenced, e.confidence, -e.start))

    def _document_date(
        self, text: str, entities: list[LegalEntity], main_number: LegalEntity | None
    ) -> LegalEntity | None:
        """The date written right after the act number, else the best date."""
        dates = [e for e in entities if e.type == "date"]
        if main_number is not None:
            line_end = text.find("\n", main_number.end)
            line_end = len(text) if line_end == -1 else line_end
            for entity in dates:
                if main_number.end <= entity.start <= line_end:
                    return entity
        return self._main_entity(entities, "date")

    def _journal_reference(
        self, text: str, entities: list[LegalEntity]
    ) -> tuple[str | None, str | None]:
        for pattern, flags in _JO_NUMBER_PATTERNS:
            match = re.search(pattern, text, flags)
            if not match:
                continue
            line_start = text.rfind("\n", 0, match.start()) + 1
            line_end = text.find("\n", match.end())
            line_end = len(text) if line_end == -1 else line_end
            jo_date = next(
                (
                    e.value
                    for e in entities
                    if e.type == "date" and line_start <= e.start < line_end
                ),
                None,
            )
            return match.group(1), jo_date
        return None, None

    @staticmethod
    def _title(text: str, main_number: LegalEntity | None) -> str:
        if main_number is not None:
            line_start = text.rfind("\n", 0, main_number.start) + 1
            line_end = text.find("\n", main_number.end)
            line = text[line_start : len(text) if line_end == -1 else line_end].strip()
            if line:
                return line
        for line in text.split("\n"):
            stripped = line.strip()
            if len(stripped) > 10 and not _STATE_LINE_RE.match(stripped):
                return stripped
        return DEFAULT_TITLE
