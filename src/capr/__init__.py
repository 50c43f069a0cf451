# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

"""Scale reconciliation for RKE2 control planes managed through Cluster API."""

__version__ = "0.1.0"
