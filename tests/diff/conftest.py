"""Shared fixtures for diff tests."""

import pytest


MULTI_FILE_DIFF = """diff --git a/src/app.py b/src/app.py
index 3b18e51..a9c2f11 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,4 +1,5 @@ import os
 import os
+import sys
 
 def main():
-    return 0
+    return run(sys.argv)
@@ -20,3 +21,3 @@ def run(args):
 def run(args):
-    print(args)
+    log(args)
     return 0
diff --git a/README.md b/README.md
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/README.md
@@ -0,0 +1,2 @@
+# App
+Usage notes
diff --git a/logo.png b/logo.png
index 1111111..2222222 100644
Binary files a/logo.png and b/logo.png differ
"""


@pytest.fixture
def multi_file_diff():
    """A git diff touching a modified file, a new file and a binary file."""
    return MULTI_FILE_DIFF


@pytest.fixture
def mixed_hunk(make_hunk):
    """A ten line hunk mixing all line kinds."""
    return make_hunk("H1", " -+ --++ +", old_start=10, new_start=12)
