"""
Unit Registry and Dimensional Checks for the Projection Engine.

This module provides a single `pint` unit registry for the engine. The
numerical core works on plain floats (degrees, meters); the public entry
points that take angular sizes also accept pint quantities, and the
distance metric can be returned as a quantity.

Example Usage
-------------
>>> from common.units import Q_, as_magnitude
>>> as_magnitude(Q_(30, 'arcminute'), 'degree')
0.5
"""

from functools import wraps
import inspect
from typing import Callable, Union

import pint
from pint import UnitRegistry as PintUnitRegistry

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity


def validate_units(expected_units: dict[str, str]):
    """Decorator to validate units of function arguments and return values.

    Arguments that are pint quantities must be convertible to the expected
    unit; bare numbers pass through unchanged.

    Parameters
    ----------
    expected_units : dict[str, str]
        Mapping from argument names to expected unit strings.
        Use 'return' key for return value validation.

    Examples
    --------
    >>> @validate_units({'falloff_radius': 'degree'})
    ... def falloff(distance_deg, falloff_radius):
    ...     return distance_deg / as_magnitude(falloff_radius, 'degree')
    """
    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()

            for param_name, expected_unit in expected_units.items():
                if param_name == 'return':
                    continue

                if param_name in bound.arguments:
                    value = bound.arguments[param_name]
                    if isinstance(value, pint.Quantity):
                        try:
                            value.to(expected_unit)
                        except pint.DimensionalityError as e:
                            raise ValueError(
                                f"Parameter '{param_name}' has incompatible units. "
                                f"Expected {expected_unit}, got {value.units}"
                            ) from e

            result = func(*args, **kwargs)

            if 'return' in expected_units and isinstance(result, pint.Quantity):
                try:
                    result.to(expected_units['return'])
                except pint.DimensionalityError as e:
                    raise ValueError(
                        f"Return value has incompatible units. "
                        f"Expected {expected_units['return']}, got {result.units}"
                    ) from e

            return result
        return wrapper
    return decorator


def as_magnitude(value: Union[float, pint.Quantity], unit: str) -> float:
    """Return the magnitude of ``value`` in ``unit``.

    Parameters
    ----------
    value : float or pint.Quantity
        A bare number already expressed in ``unit``, or a quantity.
    unit : str
        Target unit.

    Returns
    -------
    float
        Magnitude in the target unit.
    """
    if isinstance(value, pint.Quantity):
        return float(value.to(unit).magnitude)
    return float(value)

