# texdown/markdown/__init__.py
