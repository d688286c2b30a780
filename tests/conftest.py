import pytest


BUTTON_DIFF = """\
diff --git a/src/components/Button.tsx b/src/components/Button.tsx
index 1a2b3c4..5d6e7f8 100644
--- a/src/components/Button.tsx
+++ b/src/components/Button.tsx
@@ -1,3 +1,4 @@
-export const Button = () => <button>Click</button>;
+export const Button = ({ label }) => <button>{label}</button>;
+// render label inside button
"""

API_DIFF = """\
diff --git a/server/api/routes/users.ts b/server/api/routes/users.ts
index 1a2b3c4..5d6e7f8 100644
--- a/server/api/routes/users.ts
+++ b/server/api/routes/users.ts
@@ -10,2 +10,3 @@
-router.get("/users", listUsers);
+router.get("/users", withRetry(listUsers));
+router.post("/users", withRetry(createUser));
"""


@pytest.fixture(autouse=True)
def isolate_credentials(monkeypatch):
    """Remove provider credentials so no test reaches a real endpoint."""
    for name in ("GITHUB_TOKEN", "GH_TOKEN", "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def button_diff():
    return BUTTON_DIFF


@pytest.fixture
def api_diff():
    return API_DIFF
