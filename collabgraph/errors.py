from __future__ import annotations


class GraphBuildError(Exception):
    """Base class for conditions that stop a graph from being shown."""


class InputFetchError(GraphBuildError):
    pass


class EmptyGraphError(GraphBuildError):
    def __init__(self, layer: str, message: str):
        super().__init__(message)
        self.layer = layer
