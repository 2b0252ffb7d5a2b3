from .latex import render, save_document, compile_command

__all__ = ["render", "save_document", "compile_command"]
