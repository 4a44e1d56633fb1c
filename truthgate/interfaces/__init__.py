# SPDX-License-Identifier: Apache-2.0
from truthgate.interfaces.ilogger import ILogger

__all__ = ["ILogger"]
