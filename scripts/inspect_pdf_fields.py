# scripts/inspect_pdf_fields.py
"""
List every AcroForm field of a PDF with its kind and pages.

    python -m scripts.inspect_pdf_fields templates/ContractPSVSCTemplate_HT_v07_01.pdf
"""
import sys
from pathlib import Path

from pypdf import PdfReader

from app.documents.field_mapping import FIELD_NAMES
from app.documents.form_filler import FieldKind, inspect_form_fields


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    if len(argv) != 1:
        print("usage: inspect_pdf_fields <pdf>")
        return 2

    reader = PdfReader(Path(argv[0]))
    fields = inspect_form_fields(reader)
    print(f"{len(reader.pages)} pages, {len(fields)} fields")
    for name, info in sorted(fields.items()):
        pages = ",".join(str(p + 1) for p in info.pages)
        print(f"  {info.kind.value:<9} {name}  (page {pages})")

    missing = [n for n in FIELD_NAMES if n not in fields]
    unsupported = [n for n in FIELD_NAMES if n in fields and fields[n].kind is FieldKind.OTHER]
    if missing:
        print(f"⚠️  mapped but missing in template: {', '.join(missing)}")
    if unsupported:
        print(f"⚠️  mapped but unsupported kind: {', '.join(unsupported)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
