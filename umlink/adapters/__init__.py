from .classfile_adapter import ClassfileAdapter

__all__ = ["ClassfileAdapter"]
