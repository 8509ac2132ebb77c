"""
Write the OpenAPI schema of the warehouse API to interfaces/openapi.json.

Usage:
  python -m wms.api.generate_openapi [output_dir]
"""

import json
import os
import sys

from wms.api.main import app


# PUBLIC_INTERFACE
def write_openapi(output_dir: str = "interfaces") -> str:
    """Dump app.openapi() as indented JSON and return the file path."""
    # All REST routes are under /api/v1
    openapi_schema = app.openapi()

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "openapi.json")
    with open(output_path, "w") as f:
        json.dump(openapi_schema, f, indent=2)
    return output_path


if __name__ == "__main__":
    write_openapi(sys.argv[1] if len(sys.argv) > 1 else "interfaces")
