"""todomark - find annotation markers inside source-code comments.

A two-stage scanning engine: comment bodies are extracted from source text
with a per-language combined regex, then annotation markers (TODO, FIXME,
NOTE, ...) are extracted from each body with one combined regex over every
configured kind.  Results are grouped per kind as decorations for a
rendering sink.
"""

__version__ = "0.1.0"
