#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.core.schema import ClassificationOut  # noqa: E402
from workforce.domain import Employee, Role  # noqa: E402
from workforce.extractors.filename import classify, suggest_upload_mode  # noqa: E402


def load_roster(path: Path, company_id: int) -> list[Employee]:
    employees: list[Employee] = []
    with path.open(newline="", encoding="utf-8") as fp:
        for row in csv.DictReader(fp):
            employees.append(
                Employee(
                    id=int(row["id"]),
                    company_id=company_id,
                    full_name=row["full_name"],
                    email=row.get("email") or "",
                    role=Role.parse(row.get("role") or "employee") or Role.EMPLOYEE,
                )
            )
    return employees


def main() -> None:
    parser = argparse.ArgumentParser(description="Clasifica nombres de archivo contra la plantilla de empleados")
    parser.add_argument("files", nargs="+", help="Nombres o rutas de los archivos a clasificar")
    parser.add_argument("--roster", required=True, help="CSV con columnas id, full_name, email[, role]")
    parser.add_argument("--company", type=int, default=1, help="Identificador de empresa")
    parser.add_argument("--json", action="store_true", help="Salida en JSON")
    args = parser.parse_args()

    roster = load_roster(Path(args.roster), args.company)
    results = [classify(Path(name).name, roster) for name in args.files]

    if args.json:
        payload = {
            "items": [ClassificationOut.from_result(result).model_dump(mode="json") for result in results],
            "suggested_mode": suggest_upload_mode(results),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    for result in results:
        employee = result.employee.full_name if result.employee else ("(ambiguo)" if result.employee_ambiguous else "-")
        print(f"{result.file_name}\t{result.document_type.display_name}\t{employee}\t{result.confidence.value}")
        if result.suggested_name:
            print(f"  -> {result.suggested_name}")
    print(f"Modo sugerido: {suggest_upload_mode(results)}")


if __name__ == "__main__":
    main()
