"""
Curated XMLUI cookbook patterns served by the `pattern` tool.

Every entry's documentation URL is checked against the URL registry when the
table is loaded; entries whose page does not exist are dropped with a warning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from mediator import URLRegistry

log = logging.getLogger("xmlui-mcp")


@dataclass(frozen=True)
class PatternEntry:
    name: str
    triggers: Tuple[str, ...]
    code: str
    url: str


PATTERNS: Tuple[PatternEntry, ...] = (
    PatternEntry(
        name="Conditional Rendering",
        triggers=("conditional", "rendering", "when", "visible", "show", "hide"),
        code="""<!-- Show/hide with when attribute -->
<Text when="{showGreeting}" value="Hello!" />

<!-- Toggle visibility -->
<Button label="Toggle" onClick="showGreeting = !showGreeting" />""",
        url="https://docs.xmlui.org/conditional-rendering",
    ),
    PatternEntry(
        name="List Rendering",
        triggers=("list", "loop", "foreach", "repeat", "items", "array", "map"),
        code="""<!-- Render a list of items -->
<List data="{items}">
  <ListItem>
    <Text value="{$item.name}" />
  </ListItem>
</List>""",
        url="https://docs.xmlui.org/components/List",
    ),
    PatternEntry(
        name="Form with Validation",
        triggers=("form", "validation", "validate", "submit", "input"),
        code="""<Form onSubmit="handleSubmit">
  <FormItem label="Name">
    <TextBox id="name" required="true" />
  </FormItem>
  <FormItem label="Email">
    <TextBox id="email" required="true" />
  </FormItem>
  <Button type="submit" label="Submit" />
</Form>""",
        url="https://docs.xmlui.org/components/Form",
    ),
    PatternEntry(
        name="Navigation / Routing",
        triggers=("navigation", "navigate", "route", "routing", "page", "pages", "link"),
        code="""<!-- Page navigation -->
<NavPanel>
  <NavLink to="/home" label="Home" />
  <NavLink to="/about" label="About" />
</NavPanel>

<!-- Pages define routes -->
<Pages>
  <Page id="home" url="/home">
    <Text value="Home page" />
  </Page>
</Pages>""",
        url="https://docs.xmlui.org/components/Pages",
    ),
    PatternEntry(
        name="Data Binding / State",
        triggers=("binding", "bind", "state", "variable", "appstate", "reactive"),
        code="""<!-- Declare state variable -->
<var name="count" value="0" />

<!-- Bind to component -->
<Text value="Count: {count}" />
<Button label="Increment" onClick="count = count + 1" />""",
        url="https://docs.xmlui.org/data-binding",
    ),
    PatternEntry(
        name="Dialog / Modal",
        triggers=("dialog", "modal", "popup", "overlay", "confirm", "alert"),
        code="""<Button label="Open Dialog" onClick="showDialog = true" />

<Dialog isOpen="{showDialog}" title="Confirm" onClose="showDialog = false">
  <Text value="Are you sure?" />
  <Button label="Yes" onClick="handleConfirm" />
  <Button label="Cancel" onClick="showDialog = false" />
</Dialog>""",
        url="https://docs.xmlui.org/components/Dialog",
    ),
    PatternEntry(
        name="API / Data Fetching",
        triggers=("api", "fetch", "data", "rest", "endpoint", "http", "request"),
        code="""<!-- Define an API call -->
<DataSource id="users" url="/api/users" method="GET" />

<!-- Use the data -->
<List data="{users.data}">
  <ListItem>
    <Text value="{$item.name}" />
  </ListItem>
</List>""",
        url="https://docs.xmlui.org/data-binding",
    ),
    PatternEntry(
        name="Theming / Dark Mode",
        triggers=("theme", "theming", "dark", "light", "mode", "color", "custom"),
        code="""<!-- Apply a theme -->
<App theme="dark">
  <Text value="Dark mode app" />
</App>

<!-- Custom theme variables in theme.json -->
{
  "colors": {
    "primary": "#3B82F6",
    "background": "#1F2937"
  }
}""",
        url="https://docs.xmlui.org/theming",
    ),
    PatternEntry(
        name="Table / DataGrid",
        triggers=("table", "datagrid", "grid", "column", "row", "sort", "pagination"),
        code="""<Table data="{users}">
  <Column field="name" header="Name" />
  <Column field="email" header="Email" />
  <Column field="role" header="Role" />
</Table>""",
        url="https://docs.xmlui.org/components/Table",
    ),
    PatternEntry(
        name="Tabs / Tab Navigation",
        triggers=("tab", "tabs", "tabbed", "tabpanel", "tabstrip"),
        code="""<TabStrip>
  <Tab label="Overview">
    <Text value="Overview content" />
  </Tab>
  <Tab label="Details">
    <Text value="Details content" />
  </Tab>
</TabStrip>""",
        url="https://docs.xmlui.org/components/TabStrip",
    ),
    PatternEntry(
        name="Event Handling",
        triggers=("event", "handler", "callback", "onclick", "onchange"),
        code="""<!-- Inline handler -->
<Button label="Click me" onClick="handleClick" />

<!-- In code-behind (index.js): -->
window.handleClick = function() {
  console.log("Button clicked");
};""",
        url="https://docs.xmlui.org/event-handling",
    ),
    PatternEntry(
        name="Code-Behind Pattern",
        triggers=("code-behind", "codebehind", "script", "javascript", "function"),
        code="""<!-- In your .xmlui file: -->
<Button label="Calculate" onClick="doCalc" />
<Text value="{result}" />

<!-- In index.js (code-behind): -->
window.doCalc = function() {
  window.result = 42;
};""",
        url="https://docs.xmlui.org/code-behind",
    ),
    PatternEntry(
        name="Stack Layout",
        triggers=("stack", "vstack", "hstack", "layout", "vertical", "horizontal"),
        code="""<!-- Vertical stack (default) -->
<VStack>
  <Text value="Top" />
  <Text value="Bottom" />
</VStack>

<!-- Horizontal stack -->
<HStack>
  <Text value="Left" />
  <Text value="Right" />
</HStack>""",
        url="https://docs.xmlui.org/components/Stack",
    ),
)


def load_patterns(registry: URLRegistry, entries: Sequence[PatternEntry] = PATTERNS) -> List[PatternEntry]:
    """Keep only entries whose documentation URL exists in *registry*."""
    kept: List[PatternEntry] = []
    for entry in entries:
        if registry.validate(entry.url) is None:
            log.warning("pattern %r dropped: %s is not a known documentation page", entry.name, entry.url)
            continue
        kept.append(entry)
    log.info("Loaded %d/%d curated patterns", len(kept), len(entries))
    return kept


def match_patterns(query: str, entries: Sequence[PatternEntry], limit: int = 3) -> List[PatternEntry]:
    """
    Score entries by trigger overlap: +1 for each trigger equal to a query word,
    +1 for each (trigger, word) pair where one contains the other.
    """
    tokens = query.lower().split()
    token_set = set(tokens)
    scored = []
    for entry in entries:
        count = 0
        for trigger in entry.triggers:
            t = trigger.lower()
            if t in token_set:
                count += 1
            count += sum(1 for tok in tokens if tok in t or t in tok)
        if count > 0:
            scored.append((count, entry))
    scored.sort(key=lambda x: x[0], reverse=True)
    return [e for _, e in scored[:limit]]
