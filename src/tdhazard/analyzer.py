"""
Extension Analyzer: read-only inventory of a ThingHazardExtension.

This module provides lightweight analysis of an extension:
    - Binding counts per category, affordance kind and mapping type
    - Worst (highest weighted) risk per affordance
    - Affordances left without any hazard
    - Warning flags for authoring issues

IMPORTANT: It does NOT modify the extension. It only produces reports.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tdhazard.binding import ThingHazardExtension
from tdhazard.config import GapPolicy
from tdhazard.domains import Domain, EnumDomain, NumericDomain
from tdhazard.model import Interval, Range, RiskLevel, ValueSet
from tdhazard.risk import RangeTable, first_gap


@dataclass
class ExtensionReport:
    """Analysis report for one Thing's hazard extension."""

    total_affordances: int = 0
    total_bindings: int = 0

    # Breakdown
    bindings_by_category: Dict[str, int] = field(default_factory=dict)
    bindings_by_kind: Dict[str, int] = field(default_factory=dict)
    fixed_bindings: int = 0
    table_bindings: int = 0
    conditional_bindings: int = 0

    # Per-affordance view
    worst_level: Dict[str, Optional[RiskLevel]] = field(default_factory=dict)
    unannotated_affordances: List[str] = field(default_factory=list)

    # Warnings and flags
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _unmapped(table: RangeTable, domain: Optional[Domain]) -> Optional[Range]:
    if isinstance(domain, NumericDomain):
        intervals = [r.range for r in table.ranges if isinstance(r.range, Interval)]
        return first_gap(intervals, domain)
    if isinstance(domain, EnumDomain):
        missing = [v for v in domain.values.values if table.lookup(v) is None]
        return ValueSet(tuple(missing)) if missing else None
    return None


def _worst(levels: List[RiskLevel]) -> Optional[RiskLevel]:
    if not levels:
        return None
    return max(levels, key=lambda level: level.rank)


def analyze_extension(ext: ThingHazardExtension) -> ExtensionReport:
    """
    Inventory an extension and flag authoring issues.

    Flags:
    - Unmapped gaps in range tables (only possible with ALLOW_UNMAPPED)
    - Ranges stating explicitly that the hazard is absent
    - Levels without a weight, which cannot be ranked
    """
    report = ExtensionReport()
    report.total_affordances = len(ext.affordances)
    report.total_bindings = len(ext)

    by_category: Dict[str, int] = defaultdict(int)
    by_kind: Dict[str, int] = defaultdict(int)

    for name, affordance in sorted(ext.affordances.items()):
        bindings = ext.bindings_for(name)
        if not bindings:
            report.unannotated_affordances.append(name)
            continue

        levels: List[RiskLevel] = []
        for binding in bindings:
            by_category[binding.info.category.value] += 1
            by_kind[affordance.kind.value] += 1
            levels.extend(binding.risk.levels())

            if isinstance(binding.risk, RangeTable):
                report.table_bindings += 1
                absent = [str(r.range) for r in binding.risk.ranges if r.level is None]
                if absent:
                    report.add_warning(
                        f"{name}/{binding.hazard.value}: no hazard in {', '.join(absent)}"
                    )
                if ext.policy.gap_policy is GapPolicy.ALLOW_UNMAPPED:
                    gap = _unmapped(binding.risk, affordance.domain)
                    if gap is not None:
                        report.add_warning(f"{name}/{binding.hazard.value}: values {gap} have no mapped risk")
            else:
                report.fixed_bindings += 1
                if binding.risk.gated:
                    report.conditional_bindings += 1

        for level in levels:
            if level.weight is None:
                report.add_warning(f"{name}: risk level '{level.label}' has no weight and cannot be ranked")
        report.worst_level[name] = _worst(levels)

    report.bindings_by_category = dict(by_category)
    report.bindings_by_kind = dict(by_kind)
    return report
