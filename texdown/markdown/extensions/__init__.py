# texdown/markdown/extensions/__init__.py
