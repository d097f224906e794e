#!/usr/bin/env python3
"""Profile the htmlcheck validator to find performance bottlenecks."""

import cProfile
import io
import pstats

from htmlcheck import TagRule, Validator

rules = [
    TagRule("div", ["class"]),
    TagRule("p"),
    TagRule("a", ["href", "title"]),
    TagRule("img", ["src", "alt"], self_closing=True),
    TagRule("table"),
    TagRule("tr"),
    TagRule("td", ["colspan"]),
    TagRule("script"),
    TagRule("", ["id"], attribute_pattern=r"data-[a-z-]+"),
]

# Sample markup, with a few violations per repetition
html = """
<div class="container">
    <p>Paragraph <a href="/one" onclick="x()">1</a></p>
    <p>Paragraph 2<img src="a.png" alt=""></p>
    <table>
        <tr><td colspan=2 data-row="1">Cell 1</td><td>Cell 2</td></tr>
        <tr><td>Cell 3</td><td><b>Cell 4</td></tr>
    </table>
    <script>if (a < b) { document.write("</div>") }</script>
</div>
""" * 100  # Repeat for more meaningful results

validator = Validator(rules)

pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    violations = validator.validate(html)

pr.disable()

print(f"{len(violations)} violations per run")
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
