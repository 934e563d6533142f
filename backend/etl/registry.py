# etl/registry.py
from metrics.models import Project
from .connectors.github import GitHubProjectConnector
from .normalizers.github import ProjectItemNormalizer

def get_connector(project: Project):
    return GitHubProjectConnector.for_project(project)

def get_normalizer(project: Project):
    return ProjectItemNormalizer(project)
