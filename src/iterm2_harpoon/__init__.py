"""
Harpoon for iTerm2: a short, restorable list of panes to jump between.

Panes are remembered by (tab name, pane title) so the list survives an
iTerm2 restart.
"""

__version__ = "1.0.0"
