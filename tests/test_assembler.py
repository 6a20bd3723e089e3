from io import BytesIO

import pytest
from pypdf import PdfReader

from app.documents.assembler import PolicyAssembler, build_policy_assembler
from app.documents.errors import TemplateNotFoundError
from app.documents.form_filler import FormFiller
from app.schemas.policy import PolicyPayload
from app.services.storage import MemoryStorage
from tests.pdf_factory import make_form_template, make_marker_pdf, page_has_image, png_b64
from tests.payloads import policy_body


def _payload(**overrides) -> PolicyPayload:
    return PolicyPayload.model_validate(policy_body(policyNumber="WEC-FL-2025-000002002", **overrides))


@pytest.mark.anyio
async def test_assemble_orders_form_terms_disclosure(storage, settings):
    pdf = await build_policy_assembler(storage, settings).assemble(_payload())
    reader = PdfReader(BytesIO(pdf))
    texts = [p.extract_text() for p in reader.pages]

    # 3 form pages + 2 terms pages + 1 disclosure page
    assert len(reader.pages) == 6
    assert "FORM PAGE 2" in texts[1]
    assert "TERMS PAGE 1" in texts[3]
    assert "TERMS PAGE 2" in texts[4]
    assert "DISCLOSURE PAGE 1" in texts[5]


@pytest.mark.anyio
async def test_assembled_policy_carries_filled_values(storage, settings):
    pdf = await build_policy_assembler(storage, settings).assemble(_payload())
    fields = PdfReader(BytesIO(pdf)).get_fields()
    assert fields["Text_Contract_Number"]["/V"] == "WEC-FL-2025-000002002"
    assert fields["Term_84m"]["/V"] == "/Yes"


@pytest.mark.anyio
async def test_signature_lands_on_form_pages_only(storage, settings):
    pdf = await build_policy_assembler(storage, settings).assemble(
        _payload(customerSignaturePngBase64=png_b64())
    )
    pages = PdfReader(BytesIO(pdf)).pages
    assert [page_has_image(p) for p in pages] == [True, False, True, False, False, False]


@pytest.mark.anyio
@pytest.mark.parametrize("missing", ["terms.pdf", "disclosure.pdf"])
async def test_missing_static_document_raises(missing):
    blobs = {
        "form.pdf": make_form_template(),
        "terms.pdf": make_marker_pdf("TERMS"),
        "disclosure.pdf": make_marker_pdf("DISCLOSURE"),
    }
    blobs.pop(missing)
    store = MemoryStorage(blobs)
    assembler = PolicyAssembler(store, FormFiller(store, "form.pdf"), "terms.pdf", "disclosure.pdf")
    with pytest.raises(TemplateNotFoundError) as exc:
        await assembler.assemble(_payload())
    assert exc.value.key == missing


@pytest.mark.anyio
async def test_assembled_seventy_two_month_contract(storage, settings):
    coverage = dict(policy_body()["coverage"], termMonths=72, commercial=False, contractPrice="2500.00")
    pdf = await build_policy_assembler(storage, settings).assemble(_payload(coverage=coverage))
    reader = PdfReader(BytesIO(pdf))
    fields = reader.get_fields()

    assert fields["Term_72m"]["/V"] == "/Yes"
    assert fields["Term_84m"]["/V"] == "/Off"
    assert fields["Term_96m"]["/V"] == "/Off"
    assert fields["LossCode_COMMERCIAL"]["/V"] == "/Off"
    assert fields["Text_Contract_Price"]["/V"] == "2500.00"
    assert len(reader.pages) == 3 + 2 + 1
    # no signature supplied
    assert not any(page_has_image(p) for p in reader.pages)
