"""
Demo: Annotate the example lamp and camera, analyze them and print the reports.
"""

import json

from tdhazard.analyzer import analyze_extension
from tdhazard.examples import build_camera_extension, build_lamp_extension, camera_thing, lamp_thing
from tdhazard.integration import embed_extension, extract_extension


def print_report(title, report):
    """Pretty-print an ExtensionReport."""
    print()
    print("=" * 70)
    print(f"HAZARD EXTENSION REPORT: {title}")
    print("=" * 70)
    print()

    print("BASIC METRICS")
    print(f"  Affordances:           {report.total_affordances}")
    print(f"  Bindings:              {report.total_bindings}")
    print(f"  Fixed / Table:         {report.fixed_bindings} / {report.table_bindings}")
    print(f"  Conditional:           {report.conditional_bindings}")
    print()

    print("BY CATEGORY")
    for category, count in sorted(report.bindings_by_category.items()):
        print(f"  {category}: {count}")
    print()

    print("WORST RISK PER AFFORDANCE")
    for name, level in sorted(report.worst_level.items()):
        print(f"  {name}: {level}")
    if report.unannotated_affordances:
        print(f"  Unannotated: {report.unannotated_affordances}")
    print()

    if report.warnings:
        print("WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("NO WARNINGS")
    print()


if __name__ == "__main__":
    lamp_td = embed_extension(lamp_thing(), build_lamp_extension())
    camera_td = embed_extension(camera_thing(), build_camera_extension())

    for td in (lamp_td, camera_td):
        ext = extract_extension(td)
        print_report(td["title"], analyze_extension(ext))

    print("Lamp fire hazard by brightness:")
    lamp = extract_extension(lamp_td)
    for brightness in (0, 30, 50, 75, 100):
        print(f"  {brightness:>3}% -> {lamp.resolve('brightness', 'sho:FireHazard', brightness)}")
    print()

    with open("example_lamp_td.json", "w") as f:
        json.dump(lamp_td, f, indent=2, sort_keys=True)
    print("Annotated lamp exported to example_lamp_td.json")
