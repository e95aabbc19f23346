"""Source acquisition domain exports."""

from .repository_checkout import SourceAcquisitionError, acquire_source, build_clone_command

__all__ = ["SourceAcquisitionError", "acquire_source", "build_clone_command"]
