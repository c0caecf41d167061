"""Documentation site build pipeline."""

from apidocs_builder.site.pipeline import BuildOptions, BuildReport, BuildStepError

__all__ = ["BuildOptions", "BuildReport", "BuildStepError"]
