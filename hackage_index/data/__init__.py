"""
Reading the repository index archive.

This package is responsible for:
* Classifying archive paths into .cabal, package.json and preferred-versions files.
* Streaming the archive entries in a single pass.
* Folding them into per-package release metadata and checking it is complete.
"""
