# scripts/seed_templates.py
"""
Upload the static contract PDFs and the brand logo to the configured store.

    python -m scripts.seed_templates ./seed
Expects in <dir>: the three template PDFs (named like their keys) and the logo.
"""
import sys
from pathlib import Path

from app.config import get_settings
from app.services.storage import get_storage


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    if len(argv) != 1:
        print("usage: seed_templates <dir>")
        return 2

    source = Path(argv[0])
    settings = get_settings()
    storage = get_storage(settings)

    keys = [
        settings.PDF_TEMPLATE_KEY,
        settings.PDF_TERMS_KEY,
        settings.PDF_DISCLOSURE_KEY,
        settings.BRAND_LOGO_KEY,
    ]
    failed = 0
    for key in keys:
        path = source / Path(key).name
        if not path.is_file():
            print(f"❌ missing {path}")
            failed += 1
            continue
        storage.put_bytes(key, path.read_bytes())
        print(f"✅ {path.name} -> {key}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
