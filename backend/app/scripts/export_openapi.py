from __future__ import annotations

import json
import sys
from pathlib import Path

from backend.app.main import create_app

DEFAULT_SCHEMA_PATH = Path("openapi") / "article-translator.json"


def export_schema(schema_path: Path = DEFAULT_SCHEMA_PATH) -> Path:
    schema_path.parent.mkdir(parents=True, exist_ok=True)
    schema = create_app().openapi()
    schema_path.write_text(json.dumps(schema, indent=2, sort_keys=True), encoding="utf-8")
    return schema_path


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    schema_path = export_schema(Path(args[0]) if args else DEFAULT_SCHEMA_PATH)
    print(f"Wrote OpenAPI schema to {schema_path}")


if __name__ == "__main__":
    main()
