#!/usr/bin/env python

"""Entry point for python -m aci_push_async."""

from .cli import cli

cli()  # pylint: disable=no-value-for-parameter
