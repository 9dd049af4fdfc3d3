"""get_gradle_project_info: structured project metadata."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from gradle_mcp.contracts.enums import InfoCategory
from gradle_mcp.contracts.errors import BuildInvocationError, GradleConnectionError
from gradle_mcp.gradle.service import GradleService
from gradle_mcp.mcp.types import ProjectInfoResponse

logger = structlog.get_logger(__name__)

# Category -> (response key, label used in error messages)
_RESPONSE_KEYS: dict[InfoCategory, tuple[str, str]] = {
    InfoCategory.BUILD_STRUCTURE: ("build_structure", "build structure"),
    InfoCategory.TASKS: ("tasks", "tasks"),
    InfoCategory.ENVIRONMENT: ("environment", "environment info"),
    InfoCategory.PROJECT_DETAILS: ("root_project_details", "project details"),
}


def _normalize(name: str) -> str:
    return name.strip().strip('"').replace("_", "").lower()


_BY_NORMALIZED_NAME: dict[str, InfoCategory] = {
    **{_normalize(category.name): category for category in InfoCategory},
    **{_normalize(category.value): category for category in InfoCategory},
}


def resolve_categories(requested: Sequence[str] | None) -> list[InfoCategory]:
    """Categories to fetch, in declaration order.

    None means all categories; an empty list means none. Unknown names are
    ignored with a warning. Matching ignores case and underscores, so
    ``buildStructure``, ``BUILD_STRUCTURE`` and ``buildstructure`` agree.
    """
    if requested is None:
        return list(InfoCategory)
    selected: set[InfoCategory] = set()
    for name in requested:
        category = _BY_NORMALIZED_NAME.get(_normalize(name))
        if category is None:
            logger.warning("Ignoring invalid requestedInfo category", category=name)
            continue
        selected.add(category)
    return [category for category in InfoCategory if category in selected]


def get_project_info(
    service: GradleService,
    project_path: str,
    requested_info: Sequence[str] | None = None,
) -> ProjectInfoResponse:
    """Fetch the requested categories of information about a project.

    Failures never raise: they are reported in the ``errors`` list so the
    caller still receives whatever could be fetched.
    """
    categories = resolve_categories(requested_info)
    logger.debug("Requesting project info", project_path=project_path, categories=[c.value for c in categories])
    response: ProjectInfoResponse = {"requested_path": project_path}
    errors: list[str] = []

    try:
        if not categories:
            # Nothing to fetch; still validate the path
            with service.connection(project_path):
                pass
        else:
            model = service.fetch_project_model(project_path)
            for category in categories:
                key, label = _RESPONSE_KEYS[category]
                value: Any = model.get(category.value)
                if value is None:
                    errors.append(f"Failed to fetch {label}: not reported by the build")
                    continue
                response[key] = value  # type: ignore[literal-required]  # keys come from _RESPONSE_KEYS
    except GradleConnectionError as e:
        logger.error("Gradle connection error", project_path=project_path, error=str(e))
        errors.append(f"Gradle connection failed for '{project_path}': {e}")
    except (BuildInvocationError, ValueError) as e:
        # ValueError covers a model line that is not valid JSON
        logger.error("Failed to fetch project model", project_path=project_path, error=str(e))
        for category in categories:
            errors.append(f"Failed to fetch {_RESPONSE_KEYS[category][1]}: {e}")

    if errors:
        response["errors"] = errors
    return response
