"""Template acquisition -- reference resolution, download and extraction.

Quick usage::

    from create_astro.config import TemplateSource
    from create_astro.template import ArchiveFetcher, ReferenceResolver

    source = TemplateSource()
    reference = await ReferenceResolver(source).resolve()
    await ArchiveFetcher(source).fetch(reference.ref, Path("my-astro-app"))
"""

from create_astro.template.fetcher import ArchiveFetcher
from create_astro.template.resolver import ReferenceResolver
from create_astro.template.selector import FrameworkSelector

__all__ = [
    "ArchiveFetcher",
    "FrameworkSelector",
    "ReferenceResolver",
]
