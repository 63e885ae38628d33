"""
Shared pytest fixtures for xmlui-mcp tests
"""
import pytest
from pathlib import Path
from mcp.server.fastmcp import FastMCP

from analytics import Analytics
from context import ServerContext
from mediator import DEFAULT_BASE_URL


BUTTON_MD = """# Button [#button]

The `Button` component is an interactive element that triggers an action when clicked.
Buttons come in several variants and sizes and can show an icon next to the label.

## Properties

### `label`

The text displayed on the button.

### `variant`

One of `solid`, `outlined` or `ghost`. The theme decides how each variant looks.

### `icon`

An optional icon shown before the label.

## Events

### `click`

Fires when the user clicks the button.

## Styling

The button follows the current theme; avoid setting colors directly.
"""

MODAL_DIALOG_MD = """# ModalDialog

A `ModalDialog` overlays the page and blocks interaction with the content behind it
until it is closed. Open it with `dialog.open()` and close it with `dialog.close()`.

## Properties

### `title`

The dialog title, shown in the header.
"""

STACK_MD = """# Stack

`Stack` lays out its children along one direction.

## Properties

### `orientation`

Direction of the stack, `vertical` or `horizontal`.

### `gap`

Space between the children.

## Events

This component does not have any events.

## Styling

Stacks take their spacing from the theme.
"""

VSTACK_MD = """# VStack

A vertical `Stack`.
"""

TEXTBOX_MD = """# TextBox

`TextBox` captures a single line of text input.
"""

BARCHART_MD = """# BarChart

Renders a bar chart from `data`.
"""

HOWTO_PAGINATE_MD = """# Paginate a List

Use a `Table` with `pageSize` to paginate a long list of items.

```xmlui
<Table data="{items}" pageSize="10" />
```

## Server-side paging

Combine `DataSource` with the page number to fetch one page at a time.
"""

HOWTO_CONFIRM_MD = """# Confirm before delete

Show a `ModalDialog` and only run the delete action after the user confirms.
"""

MARKUP_MD = """# Markup

## Components and tags

Every XMLUI component is written as an XML tag.
"""

MAIN_XMLUI = """<App>
  <Pages fallbackPath="/404">
    <Page url="/">
      <Text>Home</Text>
    </Page>
    <Page url="/guides/markup">
      <Markdown src="/pages/markup.md" />
    </Page>
    <Page url="/howto/paginate-a-list">
      <Markdown src="/pages/howto/paginate-a-list.md" />
    </Page>
    <Page url="/howto/confirm-before-delete"/>
    <Page url="/old-markup">
      <Redirect to="/guides/markup" />
    </Page>
    <Page url="/blog/*">
      <Text>Blog</Text>
    </Page>
    <Page url="/404">
      <Text>Not found</Text>
    </Page>
  </Pages>
</App>
"""

COUNTER_XMLUI = """<App var.count="{0}">
  <Button label="Count: {count}" onClick="count++" />
</App>
"""

BUTTON_TSX = """export const Button = ({ label, variant }) => {
  // the label is rendered inside the native button element
  return <button className={variant}>{label}</button>;
};
"""

STACK_TSX = """export const Stack = ({ orientation, gap, children }) => {
  return <div data-orientation={orientation}>{children}</div>;
};
"""


def write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def build_corpus(repo: Path) -> Path:
    """Lay out a small XMLUI snapshot under *repo*."""
    write(repo, ".xmlui-version", "xmlui@0.11.4\n")
    write(repo, "docs/content/components/Button.md", BUTTON_MD)
    write(repo, "docs/content/components/ModalDialog.md", MODAL_DIALOG_MD)
    write(repo, "docs/content/components/Stack.md", STACK_MD)
    write(repo, "docs/content/components/VStack.md", VSTACK_MD)
    write(repo, "docs/content/components/TextBox.md", TEXTBOX_MD)
    write(repo, "docs/content/components/_overview.md", "# Overview\n\nInternal index.\n")
    write(repo, "docs/content/components/xmlui-charts/BarChart.md", BARCHART_MD)
    write(repo, "docs/content/pages/howto/paginate-a-list.md", HOWTO_PAGINATE_MD)
    write(repo, "docs/content/pages/howto/confirm-before-delete.md", HOWTO_CONFIRM_MD)
    write(repo, "docs/content/pages/markup.md", MARKUP_MD)
    write(repo, "docs/src/Main.xmlui", MAIN_XMLUI)
    write(repo, "docs/src/components/Counter.xmlui", COUNTER_XMLUI)
    write(repo, "xmlui/src/components/Button/Button.tsx", BUTTON_TSX)
    write(repo, "xmlui/src/components/Stack/Stack.tsx", STACK_TSX)
    return repo


@pytest.fixture
def corpus(tmp_path):
    """A valid snapshot directory."""
    return build_corpus(tmp_path / "repo")


@pytest.fixture
def example_root(tmp_path):
    """An example app outside the snapshot."""
    root = tmp_path / "apps" / "todo"
    write(root, "Main.xmlui", '<App>\n  <Button label="Add todo" onClick="addTodo()" />\n</App>\n')
    write(root, "README.md", "# Todo\n\nA small todo app built with XMLUI.\n")
    return root


@pytest.fixture
def analytics_path(tmp_path):
    return tmp_path / "cache" / "xmlui-mcp-analytics.jsonl"


@pytest.fixture
def ctx(corpus, example_root, analytics_path):
    """Server context over the fake snapshot."""
    return ServerContext(
        repo_root=corpus,
        example_roots=[example_root],
        base_url=DEFAULT_BASE_URL,
        analytics=Analytics(analytics_path),
    )


@pytest.fixture
def mcp_server():
    """Create a fresh FastMCP server instance for testing"""
    return FastMCP("test-xmlui")


@pytest.fixture
def mcp_server_with_tools(mcp_server, ctx):
    """Create a FastMCP server with default tools registered"""
    from defaults.tools import register_default_tools
    register_default_tools(mcp_server, ctx)
    return mcp_server


@pytest.fixture
def dispatcher(mcp_server_with_tools):
    return mcp_server_with_tools._dispatcher
