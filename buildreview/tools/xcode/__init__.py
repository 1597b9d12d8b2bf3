"""Xcode build tool."""

from buildreview.tools.xcode.archive import ArchiveAssembler
from buildreview.tools.xcode.classifier import LogLineClassifier
from buildreview.tools.xcode.tool import XcodebuildInvocation, XcodeTool

__all__ = [
    "ArchiveAssembler",
    "LogLineClassifier",
    "XcodebuildInvocation",
    "XcodeTool",
]
