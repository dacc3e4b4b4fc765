"""Pane layout: geometry, focus, tabs, modals and the coordinator.

Import :class:`~paneweave.layout.coordinator.LayoutManager` from its module;
the terminal package depends on :mod:`paneweave.layout.region`.
"""
