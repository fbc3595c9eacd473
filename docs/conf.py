"""Sphinx configuration."""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

from anonymization_risk import __version__  # noqa: E402

project = "Anonymization Risk"
author = "Anonymization Risk Developers"
release = __version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

html_theme = "sphinx_rtd_theme"
html_show_copyright = False

# Docstrings follow the numpy convention
napoleon_google_docstring = False
napoleon_numpy_docstring = True

autodoc_member_order = "bysource"
autodoc_typehints = "signature"
typehints_document_rtype = False
always_document_param_types = False
typehints_use_signature = True
typehints_use_signature_return = False
