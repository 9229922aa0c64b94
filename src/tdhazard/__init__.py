"""
Thing Description Hazard Annotations (tdhazard)

Typed hazard metadata for the interaction affordances of a Web of Things
Thing Description: a closed hazard catalog, risk levels mapped onto value
ranges, and validated bindings embedded in the TD as a `sho:` vendor
extension.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Thing Description parsing or JSON-LD processing
    - Protocol bindings and forms
    - Runtime enforcement of hazards
    - Presentation to end users

It receives a parsed TD, validates hazard annotations against the
affordances it declares, and writes back only its own extension keys.
"""

__version__ = "0.1.0"
