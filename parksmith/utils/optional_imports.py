"""Helper for optional dependency imports.

Only the plotting workflow is optional (matplotlib). Everything the
statistical core needs is a hard dependency.
"""

from typing import Any


def optional_import(
    module_path: str,
    names: list[str],
) -> tuple[bool, dict[str, Any]]:
    """Import optional names, reporting whether the import succeeded.

    Args:
        module_path: Full import path (e.g., 'parksmith.workflows.plotting')
        names: List of names to import from the module

    Returns:
        Tuple of (available: bool, imports: dict[str, Any])
        - available: True if import succeeded, False otherwise
        - imports: Dictionary mapping name -> imported object (or None if import failed)

    Example:
        >>> available, imports = optional_import(
        ...     'parksmith.workflows.plotting',
        ...     ['plot_variogram'],
        ... )
        >>> PLOTTING_AVAILABLE = available
        >>> plot_variogram = imports['plot_variogram']
    """
    try:
        module = __import__(module_path, fromlist=names, level=0)
        result = {name: getattr(module, name) for name in names}
        return True, result
    except ImportError:
        result = {name: None for name in names}  # type: ignore
        return False, result
