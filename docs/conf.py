# Sphinx configuration for the GitHub Work Orchestrator API reference.

import os
import sys

sys.path.insert(0, os.path.abspath('../src'))

project = 'GitHub Work Orchestrator'
copyright = '2026, Trickl'
author = 'Trickl'
release = '0.1.0'

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

root_doc = 'index'
exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'
html_title = 'GitHub Work Orchestrator'

# Importing the modules must not require GitHub credentials or a web stack.
autodoc_mock_imports = ['github', 'fastapi']
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'undoc-members': False,
    'show-inheritance': True,
}
autodoc_typehints = 'description'
always_document_param_types = True

napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'requests': ('https://requests.readthedocs.io/en/latest/', None),
    'pydantic': ('https://docs.pydantic.dev/latest/', None),
}
