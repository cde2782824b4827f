"""
Workout template registry.

All bundled templates are registered here at import time.  Use
get_template() to look one up by id, or wrap any template list in a
Catalog to hand a custom provider to the session manager.

If YAML loading yields no templates, a RuntimeError is raised: the
application cannot run sessions without a catalog.
"""

from typing import Iterable, Protocol

from ..errors import TemplateNotFoundError
from ..models import WorkoutTemplate


class CatalogProvider(Protocol):
    """Read-only source of workout templates."""

    def list_templates(self) -> list[WorkoutTemplate]:
        ...

    def get_template(self, template_id: str) -> WorkoutTemplate:
        ...


class Catalog:
    """Immutable, ordered collection of workout templates."""

    def __init__(self, templates: Iterable[WorkoutTemplate]):
        self._templates: dict[str, WorkoutTemplate] = {}
        for template in templates:
            if template.template_id in self._templates:
                raise ValueError(f"Duplicate template id '{template.template_id}'")
            self._templates[template.template_id] = template

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def list_templates(self) -> list[WorkoutTemplate]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> WorkoutTemplate:
        """
        Return the template with the given id.

        Raises:
            TemplateNotFoundError: If template_id is not in the catalog
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id, list(self._templates)) from None


def _build_registry() -> Catalog:
    from .loader import load_templates_from_yaml

    loaded = load_templates_from_yaml()
    if not loaded:
        raise RuntimeError(
            "hellweek-coach: no workout templates could be loaded from YAML. "
            "Check that src/hellweek_coach/workouts/*.yaml files are present and valid."
        )
    return Catalog(loaded.values())


DEFAULT_CATALOG: Catalog = _build_registry()


def list_templates() -> list[WorkoutTemplate]:
    """Return all bundled templates in catalog order."""
    return DEFAULT_CATALOG.list_templates()


def get_template(template_id: str) -> WorkoutTemplate:
    """
    Return the bundled WorkoutTemplate for the given id.

    Raises:
        TemplateNotFoundError: If template_id is not in the registry
    """
    return DEFAULT_CATALOG.get_template(template_id)
