from .file import FileBackend

__all__ = ['FileBackend']
