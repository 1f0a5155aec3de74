# Sphinx configuration of the gitexec-core documentation
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import gitexec_core

project = 'gitexec-core'
author = 'gitexec-core developers'
copyright = f'2026, {author}'
release = gitexec_core.__version__
version = '.'.join(release.split('.')[:2])

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.autosummary',
    'sphinx.ext.intersphinx',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
]

autosummary_generate = True
autoclass_content = 'both'
autodoc_typehints = 'description'
# numpy-style "Parameters"/"Raises" sections
napoleon_google_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'datasalad': ('https://datasalad.readthedocs.io/latest', None),
}

primary_domain = 'py'
exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'
