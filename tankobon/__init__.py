"""Tankobon core package.

Modules:
- formats: container format classification
- parser / default_parser: filename and folder heuristics
- comicinfo: embedded metadata model and ComicInfo.xml parsing
- archive / book / images: per-format engines (pages, covers, extraction)
- reading_items: resolution of a file into a ParsedItem and format dispatch
- scanner: library walk on a worker pool
- config: INI parsing and config object
"""
