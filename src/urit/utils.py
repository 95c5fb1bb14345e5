from functools import lru_cache

from urit.template import Template


@lru_cache(maxsize=256)
def _parsed(template: str) -> Template:
    return Template.parse(template)


def matches_template(path: str, template: str) -> bool:
    """Check if a path matches a template.

    Returns True if the path could have been generated from this template.
    Raises TemplateParseError if the template itself is malformed.
    """
    return _parsed(template).matches(path) is not None


def extract_template_variables(path: str, template: str) -> dict[str, str]:
    """Extract variable values from a path using a template.

    Returns a dict mapping variable names (or positions, as strings) to their
    first value. Empty if the path does not match.
    """
    vars = _parsed(template).matches(path)
    if vars is None:
        return {}
    result: dict[str, str] = {}
    for var in vars:
        key = var.name or str(var.position)
        if key not in result:
            result[key] = vars.get_positional(var.position) or ""
    return result
