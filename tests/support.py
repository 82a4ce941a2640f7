"""
Models and helpers shared across the formschema test suite.

The models cover the scenarios a form decoder meets in practice: multiple
values, inherited and nested structs, optional structs, lists of structs,
an ignored field, a private attribute, and single and multiple uploads.
"""

from dataclasses import dataclass, field
from typing import Annotated, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from formschema import FileHeader, Form

BOUNDARY = "formschema-test-boundary"


class Post(BaseModel):
    """Basic form with two string fields."""

    title: Annotated[str, Form("title")] = ""
    content: Annotated[str, Form("content")] = ""


class Person(BaseModel):
    """Nested struct."""

    name: Annotated[str, Form("name")] = ""
    email: Annotated[str, Form("email")] = ""


class BlogPost(Post):
    """Inherits Post's fields and nests Person in every supported way."""

    id: Annotated[int, Form("id")] = 0
    ignored: Annotated[str, Form("-")] = ""
    ratings: Annotated[list[int], Form("rating")] = []
    author: Person = Field(default_factory=Person)
    coauthor: Person | None = None
    readers: Annotated[list[Person], Form("readers")] = []
    contributors: Annotated[list[Person | None], Form("contributors")] = []
    header_image: Annotated[FileHeader | None, Form("headerImage")] = None
    pictures: Annotated[list[FileHeader], Form("picture")] = []
    _unexported: str = PrivateAttr(default="")


class EmbedPerson(BaseModel):
    """Promotes an optional Person's fields into its own keys."""

    person: Annotated[Person | None, Form(embed=True)] = None
    nickname: str = ""


class Signup(BaseModel):
    """Form with fields marked required."""

    username: Annotated[str, Form("username", required=True)] = ""
    age: Annotated[int, Form("age", required=True)] = 0
    bio: str = ""
    owner: Person | None = None
    members: list["Member"] = []


class Member(BaseModel):
    role: Annotated[str, Form("role", required=True)] = ""
    note: str = ""


Signup.model_rebuild()


class Account(BaseModel):
    """Required fields whose external keys differ from their attribute names."""

    user_name: Annotated[str, Form("username", required=True)] = ""
    display_name: Annotated[str, Form(required=True), Field(alias="displayName")] = ""


class Credentials(BaseModel):
    login: Annotated[str, Form("login", required=True)] = ""


class Registration(BaseModel):
    """Embeds a struct holding a required field."""

    credentials: Annotated[Credentials | None, Form(embed=True)] = None


class Settings(BaseModel):
    """Frozen model; decoding must leave it untouched."""

    model_config = ConfigDict(frozen=True)

    theme: str = "light"


class Profile(BaseModel):
    locked: Annotated[str, Field(frozen=True)] = "original"
    editable: str = ""
    settings: Settings = Field(default_factory=Settings)


class Contact(BaseModel):
    """Model with required fields and no defaults."""

    name: str
    phone: str


class AddressBook(BaseModel):
    owner: Contact | None = None
    contacts: list[Contact] = []


@dataclass
class Address:
    street: str = ""
    number: int = 0


@dataclass
class Customer:
    name: str
    tags: list[str] = field(default_factory=list)
    address: Address | None = None
    previous: list[Address] = field(default_factory=list)
    _internal: str = ""


class FileInfo(NamedTuple):
    field_name: str
    file_name: str
    data: bytes


def build_multipart_body(
    files: list[FileInfo],
    fields: list[tuple[str, str]] | None = None,
    boundary: str = BOUNDARY,
) -> bytes:
    """Encode files and fields as a multipart/form-data body, files first."""
    parts = []
    for info in files:
        header = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{info.field_name}"; '
            f'filename="{info.file_name}"\r\n'
            "Content-Type: application/octet-stream\r\n\r\n"
        )
        parts.append(header.encode("utf-8") + info.data + b"\r\n")
    for name, value in fields or []:
        part = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n"
        )
        parts.append(part.encode("utf-8"))
    parts.append(f"--{boundary}--\r\n".encode())
    return b"".join(parts)


def blog_post_fields(post: BlogPost) -> list[tuple[str, str]]:
    """Flatten a BlogPost into the form fields a browser would submit."""
    fields = [
        ("title", post.title),
        ("content", post.content),
        ("id", str(post.id)),
        ("ignored", post.ignored),
    ]
    fields.extend(("rating", str(value)) for value in post.ratings)
    fields.append(("author.name", post.author.name))
    fields.append(("author.email", post.author.email))
    if post.coauthor is not None:
        fields.append(("coauthor.name", post.coauthor.name))
        fields.append(("coauthor.email", post.coauthor.email))
    for index, person in enumerate(post.contributors):
        fields.append((f"contributors.{index}.name", person.name))
        fields.append((f"contributors.{index}.email", person.email))
    for index, person in enumerate(post.readers):
        fields.append((f"readers.{index}.name", person.name))
        fields.append((f"readers.{index}.email", person.email))
    return fields
