# app/documents/form_filler.py
"""
Fill the contract AcroForm template from a policy payload.

Pipeline: fetch template -> parse -> map fields -> set + lock each field ->
overlay the customer signature -> regenerate appearances -> serialize.
"""
from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import structlog
from fastapi.concurrency import run_in_threadpool
from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import DictionaryObject, NameObject, NumberObject, TextStringObject
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as rl_canvas

from app.documents.blobs import fetch_blob
from app.documents.errors import FormLoadError
from app.documents.field_mapping import ON, FieldMap, to_acro_fields
from app.schemas.policy import PolicyPayload
from app.services.storage import Storage

logger = structlog.get_logger(__name__)

# x, y, width, height in PDF points (origin bottom-left)
SIGNATURE_RECT: Tuple[float, float, float, float] = (360, 120, 140, 40)
DEALER_COPY_PAGE = 0
CUSTOMER_COPY_PAGE = 2

# AcroForm field flags (PDF 32000-1, 12.7.3.1 / 12.7.4.2.1)
FF_READ_ONLY = 1
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16

_DATA_URL = re.compile(r"^data:image/[a-zA-Z+.-]+;base64,")


class FieldKind(str, Enum):
    TEXT = "text"
    CHECKBOX = "checkbox"
    OTHER = "other"


@dataclass
class FormFieldInfo:
    name: str
    kind: FieldKind
    field: DictionaryObject
    widgets: List[Tuple[int, DictionaryObject]] = field(default_factory=list)

    @property
    def pages(self) -> List[int]:
        return sorted({page_index for page_index, _ in self.widgets})


# -------------------------
# Form schema inspection
# -------------------------


def _inherited(obj: DictionaryObject, key: str):
    node = obj
    while node is not None:
        if key in node:
            return node[key]
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return None


def _qualified_name(obj: DictionaryObject) -> str:
    parts: List[str] = []
    node = obj
    while node is not None:
        t = node.get("/T")
        if t is not None:
            parts.insert(0, str(t))
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return ".".join(parts)


def _field_of(annot: DictionaryObject) -> Optional[DictionaryObject]:
    """The terminal field dict: the widget itself when merged, else its parent."""
    if "/T" in annot:
        return annot
    parent = annot.get("/Parent")
    return parent.get_object() if parent is not None else None


def field_kind(obj: DictionaryObject) -> FieldKind:
    ft = _inherited(obj, "/FT")
    flags = int(_inherited(obj, "/Ff") or 0)
    if ft == "/Tx":
        return FieldKind.TEXT
    if ft == "/Btn" and not flags & (FF_RADIO | FF_PUSHBUTTON):
        return FieldKind.CHECKBOX
    return FieldKind.OTHER


def inspect_form_fields(doc: Union[PdfReader, PdfWriter]) -> Dict[str, FormFieldInfo]:
    """Enumerate every widget-backed form field with its kind, keyed by qualified name."""
    fields: Dict[str, FormFieldInfo] = {}
    for page_index, page in enumerate(doc.pages):
        annots = page.get("/Annots")
        if annots is None:
            continue
        for ref in annots.get_object():
            annot = ref.get_object()
            if annot.get("/Subtype") != "/Widget":
                continue
            fobj = _field_of(annot)
            if fobj is None:
                continue
            name = _qualified_name(fobj)
            info = fields.get(name)
            if info is None:
                info = fields[name] = FormFieldInfo(name=name, kind=field_kind(fobj), field=fobj)
            info.widgets.append((page_index, annot))
    return fields


def checkbox_on_state(annot: DictionaryObject) -> str:
    """The appearance state name meaning 'checked' (often /Yes, sometimes /On or /1)."""
    ap = annot.get("/AP")
    if ap is not None:
        normal = ap.get_object().get("/N")
        if normal is not None:
            normal = normal.get_object()
            if hasattr(normal, "keys"):
                for key in normal.keys():
                    if str(key) != "/Off":
                        return str(key)
    return "/Yes"


def _lock(obj: DictionaryObject) -> None:
    flags = int(obj.get("/Ff", 0))
    obj[NameObject("/Ff")] = NumberObject(flags | FF_READ_ONLY)


# -------------------------
# Signature overlay
# -------------------------


def signature_pages(page_count: int) -> List[int]:
    """Dealer copy (first page) always; customer copy (third page) when present."""
    if page_count < 1:
        return []
    pages = [DEALER_COPY_PAGE]
    if page_count > CUSTOMER_COPY_PAGE:
        pages.append(CUSTOMER_COPY_PAGE)
    return pages


def decode_signature(data: str) -> Image.Image:
    """Base64 (optionally a data: URL) -> loaded Pillow image."""
    raw = base64.b64decode(_DATA_URL.sub("", data.strip()), validate=True)
    img = Image.open(BytesIO(raw))
    img.load()
    return img


def _signature_overlay(
    writer: PdfWriter,
    page_indexes: Sequence[int],
    image: Image.Image,
    rect: Tuple[float, float, float, float],
) -> PdfReader:
    """One overlay page per target page; reportlab embeds the image once."""
    x, y, w, h = rect
    packet = BytesIO()
    c = rl_canvas.Canvas(packet, invariant=1)
    reader = ImageReader(image)
    for idx in page_indexes:
        box = writer.pages[idx].mediabox
        c.setPageSize((float(box.width), float(box.height)))
        c.drawImage(reader, x, y, width=w, height=h, mask="auto")
        c.showPage()
    c.save()
    packet.seek(0)
    return PdfReader(packet)


# -------------------------
# Filler
# -------------------------


class FormFiller:
    """Fills, locks and signs the contract form template."""

    def __init__(
        self,
        storage: Storage,
        template_key: str,
        *,
        mapper: Callable[[PolicyPayload], FieldMap] = to_acro_fields,
        signature_rect: Tuple[float, float, float, float] = SIGNATURE_RECT,
    ):
        self.storage = storage
        self.template_key = template_key
        self.mapper = mapper
        self.signature_rect = signature_rect

    async def fill(self, payload: PolicyPayload) -> bytes:
        template = await fetch_blob(self.storage, self.template_key)
        return await run_in_threadpool(self.fill_bytes, template, payload)

    def _load(self, template: bytes) -> PdfWriter:
        try:
            reader = PdfReader(BytesIO(template))
            page_count = len(reader.pages)
            has_form = "/AcroForm" in reader.trailer["/Root"]
        except (PyPdfError, ValueError, KeyError, OSError) as e:
            raise FormLoadError(self.template_key, str(e)) from e
        if page_count == 0 or not has_form:
            raise FormLoadError(self.template_key, "no pages or no AcroForm")
        return PdfWriter(clone_from=reader)

    def fill_bytes(self, template: bytes, payload: PolicyPayload) -> bytes:
        writer = self._load(template)
        values = self.mapper(payload)
        form = inspect_form_fields(writer)

        filled = 0
        for name, value in values.items():
            info = form.get(name)
            if info is None:
                logger.warning("form_field_missing", field=name, template_key=self.template_key)
                continue
            if info.kind is FieldKind.TEXT:
                self._set_text(writer, info, value)
            elif info.kind is FieldKind.CHECKBOX:
                self._set_checkbox(info, value)
            else:
                logger.warning("form_field_unsupported", field=name, ft=str(_inherited(info.field, "/FT")))
                continue
            _lock(info.field)
            filled += 1

        if payload.customer_signature_png_base64:
            self._sign(writer, payload.customer_signature_png_base64)

        writer.set_need_appearances_writer(True)

        out = BytesIO()
        writer.write(out)
        logger.info("form_filled", fields=filled, pages=len(writer.pages))
        return out.getvalue()

    def _set_text(self, writer: PdfWriter, info: FormFieldInfo, value: str) -> None:
        for page_index in info.pages:
            writer.update_page_form_field_values(
                writer.pages[page_index], {info.name: value}, auto_regenerate=False
            )
        # terminal field holds the value even when widgets are separate kids
        info.field[NameObject("/V")] = TextStringObject(value)

    def _set_checkbox(self, info: FormFieldInfo, value: str) -> None:
        checked = value == ON
        state = "/Off"
        for _, annot in info.widgets:
            on_state = checkbox_on_state(annot)
            if checked:
                state = on_state
            annot[NameObject("/AS")] = NameObject(on_state if checked else "/Off")
        info.field[NameObject("/V")] = NameObject(state)

    def _sign(self, writer: PdfWriter, data: str) -> None:
        targets = signature_pages(len(writer.pages))
        try:
            image = decode_signature(data)
            overlay = _signature_overlay(writer, targets, image, self.signature_rect)
            # merge only once every overlay page exists
            for i, page_index in enumerate(targets):
                writer.pages[page_index].merge_page(overlay.pages[i])
        except Exception as e:
            logger.warning("signature_skipped", reason=str(e), error=type(e).__name__)
            return
        logger.info("signature_applied", pages=[p + 1 for p in targets])
