"""create-astro-app -- scaffold an Astro project from a remote template.

Downloads a template snapshot from GitHub, strips development-only files,
renames the project and installs its dependencies.  A failed run leaves no
half-created project directory behind.

Quick usage::

    from create_astro.config import ScaffoldConfig
    from create_astro.pipeline import Scaffolder

    config = ScaffoldConfig.resolve({"project_name": "my-site", "yes": True})
    result = await Scaffolder(config).run()
"""

__version__ = "0.1.0"
