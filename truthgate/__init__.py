# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Truth determination core: guardrails, truth reconciliation and coverage gating
for silent-failure findings.
"""

from pathlib import Path

# Canonical repository root; schemas ship inside the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
ROOT_DIR = REPO_ROOT
SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

__version__ = "0.4.0"

__all__ = ["ROOT_DIR", "REPO_ROOT", "SCHEMA_DIR", "__version__"]
