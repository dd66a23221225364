"""
Application Modules.

- mobile/: Notes core for the mobile app (providers, repositories,
  document stores, live streams, configuration and logging)
"""
