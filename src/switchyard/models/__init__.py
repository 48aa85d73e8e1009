"""Chat model interfaces."""

from .model import Model, ModelResponse, Usage
from .scripted import ScriptedModel

__all__ = ["Model", "ModelResponse", "ScriptedModel", "Usage"]
