"""Demo script for live measure refresh.

This script demonstrates the LiveMeasureService over an in-memory database:
a refresh after issue changes, the quality gate outcome, idempotence of a
second refresh and the concurrent refresh of several projects.
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add parent to path
parent_path = Path(__file__).parent.parent
sys.path.insert(0, str(parent_path))

from src.config.measure_config import MeasureConfig
from src.measures.core_metrics import core_metrics
from src.measures.gate_registry import QualityGateRegistry
from src.measures.in_memory import InMemoryMeasureDatabase
from src.models.measure_models import (
    Branch,
    Component,
    Issue,
    IssueSeverity,
    IssueType,
    LiveMeasure,
    Organization,
    Qualifier,
    Snapshot,
)
from src.services.live_measure_service import LiveMeasureService

CONFIG_PATH = parent_path / "src" / "config" / "quality_gates.yaml"
LEAK_START = datetime(2024, 1, 1)


def build_project(db, key, organization_uuid="org1"):
    """Register a project with one directory and two files."""
    project = Component(
        uuid=key, key=key, qualifier=Qualifier.PROJECT,
        project_uuid=key, organization_uuid=organization_uuid,
    )
    directory = Component(
        uuid=f"{key}-src", key=f"{key}:src", qualifier=Qualifier.DIRECTORY,
        uuid_path=[key], project_uuid=key, organization_uuid=organization_uuid,
    )
    files = [
        Component(
            uuid=f"{key}-{name}", key=f"{key}:src/{name}", qualifier=Qualifier.FILE,
            uuid_path=[key, directory.uuid], project_uuid=key, organization_uuid=organization_uuid,
        )
        for name in ("api.py", "db.py")
    ]
    db.add_components(project, directory, *files)
    db.add_branch(Branch(uuid=key, project_uuid=key))
    db.add_analysis(Snapshot(
        uuid=f"{key}-analysis", component_uuid=key,
        created_at=datetime(2024, 4, 1), period_date=LEAK_START,
    ))

    # Lines of code come from the analysis, never from live refresh
    ncloc = db.metrics["ncloc"]
    for component, lines in ((files[0], 120), (files[1], 80), (directory, 200), (project, 200)):
        db.add_measure(LiveMeasure(
            component_uuid=component.uuid, project_uuid=key, metric_id=ncloc.id, value=lines,
        ))
    return project, directory, files


def print_measures(db, component, keys):
    for key in keys:
        measure = db.get_measure(component.uuid, key)
        if measure is None:
            continue
        shown = measure.text_value if measure.text_value is not None else measure.value
        leak = f" (leak: {measure.variation})" if measure.variation is not None else ""
        print(f"     - {key}: {shown}{leak}")


def demo_refresh(service, db):
    """Demonstrate a refresh after issue changes."""
    print("\n" + "=" * 70)
    print("DEMO: Refresh after issue changes")
    print("=" * 70)

    print("\n1. Building project 'payments-service'...")
    project, directory, files = build_project(db, "payments-service")
    print(f"   {len(files)} files under {directory.key}")

    print("\n2. Adding issues...")
    db.add_issues(
        Issue(key="i1", component_uuid=files[0].uuid, project_uuid=project.uuid,
              type=IssueType.BUG, severity=IssueSeverity.CRITICAL,
              effort=30, created_at=datetime(2023, 5, 1)),
        Issue(key="i2", component_uuid=files[1].uuid, project_uuid=project.uuid,
              type=IssueType.CODE_SMELL, severity=IssueSeverity.MINOR,
              effort=600, created_at=datetime(2024, 2, 1)),
        Issue(key="i3", component_uuid=files[1].uuid, project_uuid=project.uuid,
              type=IssueType.VULNERABILITY, severity=IssueSeverity.BLOCKER,
              effort=45, created_at=datetime(2024, 3, 1)),
    )
    print(f"   {len(db.issues)} issues added")

    print("\n3. Refreshing touched files...")
    events = service.refresh(files)
    print(f"   {len(events)} quality gate change event(s)")

    print("\n4. Project measures:")
    print_measures(db, project, [
        "bugs", "vulnerabilities", "code_smells", "new_violations",
        "sqale_index", "sqale_debt_ratio", "sqale_rating",
        "reliability_rating", "security_rating", "alert_status",
    ])

    gate = events[0].quality_gate()
    print(f"\n5. Quality gate '{gate.gate.name}': {gate.status.value}")
    for condition in gate.conditions:
        print(f"     - {condition.condition.metric_key}: {condition.value} -> {condition.status.value}")

    print("\n6. Refreshing again without changes...")
    commits = db.commits
    service.refresh(files)
    print(f"   New commits: {db.commits - commits}")

    print("\n   Refresh demo completed!")


async def demo_concurrent_refresh(service, db):
    """Demonstrate concurrent refresh of several projects."""
    print("\n" + "=" * 70)
    print("DEMO: Concurrent refresh")
    print("=" * 70)

    print("\n1. Building projects 'web-app' and 'orphan'...")
    web_files = build_project(db, "web-app")[2]
    orphan = Component(
        uuid="orphan-file", key="orphan:main.py", qualifier=Qualifier.FILE,
        uuid_path=["orphan"], project_uuid="orphan",
    )
    db.add_components(orphan)
    db.add_issues(Issue(
        key="i4", component_uuid=web_files[0].uuid, project_uuid="web-app",
        type=IssueType.BUG, severity=IssueSeverity.MAJOR, created_at=datetime(2024, 2, 15),
    ))

    print("\n2. Refreshing both projects concurrently...")
    outcome = await service.refresh_concurrently([*web_files, orphan])
    print(f"   Refreshed: {[e.project.key for e in outcome.events]}")
    for project_uuid, error in outcome.failures.items():
        print(f"   Failed: {project_uuid} ({error})")

    print("\n   Concurrent refresh demo completed!")


async def main():
    """Run all demos."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("\n" + "=" * 70)
    print("Live Measure Refresh - Demo")
    print("=" * 70)

    config = MeasureConfig(gate_config_path=str(CONFIG_PATH) if CONFIG_PATH.exists() else None)
    db = InMemoryMeasureDatabase(core_metrics())
    db.add_organization(Organization(uuid="org1", key="acme"))
    service = LiveMeasureService(
        component_source=db,
        measure_store=db,
        issue_source=db,
        gate_source=QualityGateRegistry(config=config),
        config=config,
    )

    try:
        demo_refresh(service, db)
        await demo_concurrent_refresh(service, db)

        print("\n" + "=" * 70)
        print("All demos completed successfully!")
        print("=" * 70 + "\n")

    except Exception as e:
        print(f"\nDemo failed with error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
