"""Converter package - translates IR declarations to Gallina sentences."""

from .module import (
    ConversionResult as ConversionResult,
    convert_func_component as convert_func_component,
    convert_module as convert_module,
    new_environment as new_environment,
)
