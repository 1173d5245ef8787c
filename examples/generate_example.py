"""Generate an example debian/control style file to see what the format looks like."""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from rfc822like import ListOf, RecordSchema, RFC822Reader, WriterConfig, dump_file


@dataclass
class Paragraph:
    package: str
    architecture: str = "any"
    depends: List[str] = field(default_factory=list)
    homepage: Optional[str] = None
    description: Optional[str] = None


schema = RecordSchema.from_dataclass(Paragraph, rename="Train-Case")

paragraphs = [
    Paragraph(
        package="hello",
        depends=["${shlibs:Depends}", "${misc:Depends}", "libc6 (>= 2.34)"],
        homepage="https://www.gnu.org/software/hello/",
        description="""example package based on GNU hello
The GNU hello program produces a familiar, friendly greeting. It allows non-programmers to use a classic computer science tool which would otherwise be unavailable to them.

Seriously though: this is an example of how to do a Debian package. It is the Debian version of the GNU Project's `hello world' program (which is itself an example for the GNU Project).""",
    ),
    Paragraph(
        package="hello-doc",
        architecture="all",
        description="documentation for hello\nThe manual for GNU hello, in info format.",
    ),
]

# Write the example, long lines wrapped at 80 columns
output = Path(__file__).parent / "hello.control"
nbytes = dump_file(paragraphs, output, ListOf(schema), wrap=True)

print(f"Written to: {output}")
print(f"Size: {nbytes} bytes")
print()
print(output.read_text(encoding="utf-8"))

# Read it back
records = RFC822Reader.read(output)
print(f"Records: {len(records)}")
for record in records:
    print(f"  {record.get('Package')}: {', '.join(record.get_list('Depends') or []) or '-'}")
