"""Generate JSON schemas for definition and settings files and save to schemas/."""

import json
from pathlib import Path

from fhiravro.kernel.definition import ElementDefinition
from fhiravro.kernel.session import CompilerSettings


def generate_schemas():
    """Generate JSON schemas for the input models."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    for model, filename in (
        (ElementDefinition, "element_definition.schema.json"),
        (CompilerSettings, "compiler_settings.schema.json"),
    ):
        path = schemas_dir / filename
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(model.model_json_schema(), f, indent=2, ensure_ascii=False)
        print(f"Generated: {path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
