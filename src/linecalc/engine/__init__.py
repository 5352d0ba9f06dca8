#!/usr/bin/env python3
"""
Expression engine for linecalc.

Line flow: comment and section handling -> natural-language normalization ->
tokenizer -> parser -> tree-walk against the unit registry and rate providers.
"""
