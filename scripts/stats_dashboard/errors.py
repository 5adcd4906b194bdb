#------------------------------------------------------------
#                          errors.py
#        Exceptions raised by the dashboard services.

class DashboardError(RuntimeError):
    pass

# Raised when any of the statistics documents cannot be fetched.
class StatsFetchError(DashboardError):
    pass

# Raised when the repository list for a user cannot be built.
class GitHubError(DashboardError):
    pass
