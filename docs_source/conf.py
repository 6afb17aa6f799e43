# Configuration file for the Sphinx documentation builder.

# Basic information about the project.
project = "mcmcstorage"
copyright = "%Y, Microsoft Corporation"
release = "0.1.0"

# Extensions
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.viewcode",  # add links to source code
    "sphinx.ext.intersphinx",  # numpy and xarray cross-references
]

autosummary_generate = True  # Turn on sphinx.ext.autosummary
autoclass_content = "both"  # include class and __init__ docstrings
intersphinx_mapping = {
    "numpy": ("https://numpy.org/doc/stable/", None),
    "xarray": ("https://docs.xarray.dev/en/stable/", None),
}

templates_path = ["_templates"]  # Path to templates
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]  # Patterns to ignore

# HTML output settings
html_theme = "alabaster"
html_static_path = ["_static"]

# Set the maximum line length for function signatures in the documentation
maximum_signature_line_length = 100
