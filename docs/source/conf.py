# Sphinx configuration for the TidyPyground API reference.

project = 'TidyPyground'
copyright = '2024, TidyPyground Developers'
author = 'TidyPyground Developers'

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.autosummary',
    'sphinx.ext.intersphinx',
]

# API pages are generated from the package docstrings.
autosummary_generate = True
autodoc_member_order = 'bysource'
templates_path = ['_templates']
exclude_patterns = []

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pyarrow': ('https://arrow.apache.org/docs', None),
}

html_theme = 'nature'
html_static_path = ['_static']
