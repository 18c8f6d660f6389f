"""
Module lifecycle signals.

``module_activating`` is sent synchronously between INSTALLING and ACTIVE;
a receiver raising leaves the installation in ERROR. The other signals are
sent once the operation has committed.
"""

from django.dispatch import Signal

module_activating = Signal()   # installation, master_module
module_installed = Signal()    # installation, actor
module_uninstalled = Signal()  # workspace_id, module_code, actor
module_enabled = Signal()      # installation
module_disabled = Signal()     # installation
module_updated = Signal()      # installation, previous_version
catalog_seeded = Signal()      # report
