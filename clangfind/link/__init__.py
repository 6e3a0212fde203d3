# SPDX-License-Identifier: MIT
"""Link plan synthesis and directive emission."""
