"""
Narrative insights collaborator.

The generator is any callable taking the report payload (a dict) and
returning a list of strings. It is configured as an import path of the form
``package.module:function`` through ``INSIGHTS_GENERATOR`` and is loaded only
when insights are requested. Any failure leaves the report's ``insights``
section as null.
"""

import importlib
import logging
from collections.abc import Callable
from config import INSIGHTS_GENERATOR

logger = logging.getLogger(__name__)

InsightsFunction = Callable[[dict], list[str]]


def load_generator(import_path: str = INSIGHTS_GENERATOR) -> InsightsFunction | None:
    """Resolve a ``module:function`` path to a callable"""
    if not import_path:
        logger.warning("Insights requested but INSIGHTS_GENERATOR is not set")
        return None

    module_name, _, function_name = import_path.partition(':')
    if not module_name or not function_name:
        logger.error(f"INSIGHTS_GENERATOR must look like 'module:function', got '{import_path}'")
        return None

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.error(f"Could not import insights module '{module_name}': {e}")
        return None

    generator = getattr(module, function_name, None)
    if not callable(generator):
        logger.error(f"'{function_name}' in '{module_name}' is not callable")
        return None
    return generator


def generate_insights(report: dict, generator: InsightsFunction | None) -> list[str] | None:
    """Run the generator, returning None if it fails or returns something other than strings"""
    if generator is None:
        return None

    try:
        insights = generator(report)
    except Exception as e:
        logger.error(f"Failed to generate insights: {e}")
        return None

    if not isinstance(insights, (list, tuple)) or not all(isinstance(item, str) for item in insights):
        logger.error("Insights generator did not return a list of strings")
        return None

    logger.info(f"Generated {len(insights)} insights")
    return list(insights)
