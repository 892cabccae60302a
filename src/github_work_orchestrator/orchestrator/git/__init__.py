"""Local git state: the git adapter and the branch reconciler."""
