from .runner import ArtifactResult, BatchRenderer, BatchReport

__all__ = ["ArtifactResult", "BatchRenderer", "BatchReport"]
