"""Tests for Rust rendering and file output."""

import pytest

from modelgen import build_models
from modelgen.codegen import generate, render_models, render_module_index
from modelgen.ir import (
    CompositionModel,
    EnumModel,
    Field,
    RequestEnvelope,
    ResponseEnvelope,
    StructModel,
    TypeAliasModel,
    UnionModel,
    UnionVariant,
)


def _field(name, field_type="String", required=True, nullable=False, fmt="string", description=None):
    return Field(name, field_type, fmt, required, nullable, description)


def _render(*models, requests=(), responses=()):
    return render_models(list(models), list(requests), list(responses))


class TestHeader:
    def test_header_first(self):
        code = _render()
        assert code.splitlines()[0] == "// Code generated by modelgen. DO NOT EDIT."

    def test_header_names_document(self):
        code = render_models([], [], [], title="Petstore")
        assert code.startswith("// Code generated by modelgen from Petstore. DO NOT EDIT.\n")

    def test_module_index(self):
        code = render_module_index("Petstore")
        assert code.splitlines()[0] == "// Code generated by modelgen from Petstore. DO NOT EDIT."
        assert "pub mod models;" in code


class TestImports:
    """Test that imports follow the types actually used."""

    def test_serde_always(self):
        assert "use serde::{Deserialize, Serialize};" in _render()

    def test_no_chrono_or_uuid_when_unused(self):
        code = _render(StructModel("Pet", (_field("name"),)))
        assert "chrono" not in code
        assert "uuid" not in code

    def test_date_time(self):
        code = _render(StructModel("Pet", (_field("born", "DateTime<Utc>", fmt="date-time"),)))
        assert "use chrono::{DateTime, Utc};" in code

    def test_date_and_date_time(self):
        code = _render(StructModel("Pet", (
            _field("born", "DateTime<Utc>"),
            _field("day", "NaiveDate"),
        )))
        assert "use chrono::{DateTime, NaiveDate, Utc};" in code

    def test_uuid(self):
        code = _render(TypeAliasModel("PetId", "Uuid"))
        assert "use uuid::Uuid;" in code
        assert "pub type PetId = Uuid;" in code

    def test_mention_in_doc_comment_only(self):
        code = _render(StructModel("Pet", (_field("name"),), description="Uuid of a DateTime<Utc>"))
        assert "/// Uuid of a DateTime<Utc>" in code
        assert "use uuid::Uuid;" not in code
        assert "use chrono" not in code

    def test_qualified_path_not_imported(self):
        code = _render(TypeAliasModel("Id", "my_crate::Uuid"))
        assert "use uuid::Uuid;" not in code

    def test_enum_variant_named_like_native_not_imported(self):
        code = _render(EnumModel("IdKind", ("uuid", "naive_date", "serial")))
        assert "    Uuid," in code
        assert "    NaiveDate," in code
        assert "use uuid::Uuid;" not in code
        assert "use chrono" not in code

    def test_union_payload_imported(self):
        code = _render(UnionModel("Key", (UnionVariant("Variant0", "Uuid"),), "oneOf"))
        assert "    Variant0(Uuid)," in code
        assert "use uuid::Uuid;" in code

    def test_type_named_like_native_not_imported(self):
        code = _render(TypeAliasModel("Key", "MyUuid"))
        assert "use uuid::Uuid;" not in code

    def test_import_order(self):
        code = _render(StructModel("Pet", (_field("id", "Uuid"), _field("born", "DateTime<Utc>"))))
        lines = code.splitlines()
        assert lines.index("use serde::{Deserialize, Serialize};") < lines.index("use chrono::{DateTime, Utc};")
        assert lines.index("use chrono::{DateTime, Utc};") < lines.index("use uuid::Uuid;")


class TestStructs:
    """Test struct and field rendering."""

    def test_struct(self):
        code = _render(StructModel("Pet", (
            _field("name"),
            _field("tag", required=False),
        )))
        assert (
            "/// Pet\n"
            "#[derive(Debug, Clone, Serialize, Deserialize)]\n"
            "pub struct Pet {\n"
            "    pub name: String,\n"
            "    pub tag: Option<String>,\n"
            "}\n"
        ) in code

    def test_nullable_required_field_is_optional(self):
        code = _render(StructModel("Pet", (_field("tag", nullable=True),)))
        assert "pub tag: Option<String>," in code

    def test_renamed_field(self):
        code = _render(StructModel("Pet", (_field("petId", "i64"),)))
        assert '    #[serde(rename = "petId")]\n    pub pet_id: i64,' in code

    def test_reserved_word_field(self):
        code = _render(StructModel("Pet", (_field("type"), _field("self"))))
        assert "pub r#type: String," in code
        assert '    #[serde(rename = "self")]\n    pub self_: String,' in code

    def test_self_reference_is_boxed(self):
        code = _render(StructModel("Node", (_field("next", "Node", required=False),)))
        assert "pub next: Option<Box<Node>>," in code

    def test_flatten(self):
        code = _render(StructModel("Bag", (
            _field("additionalProperties", "std::collections::HashMap<String, String>", required=False),
        )))
        assert "    #[serde(flatten)]\n    pub additional_properties:" in code
        assert "rename" not in code

    def test_field_docs(self):
        code = _render(StructModel("Pet", (_field("name", description="Pet name.\n\nShown in lists."),)))
        assert "    /// Pet name.\n    ///\n    /// Shown in lists.\n    pub name: String," in code

    def test_description_replaces_fallback_doc(self):
        code = _render(StructModel("Pet", (), description="A pet."))
        assert "/// A pet.\n#[derive" in code
        assert "/// Pet\n" not in code

    def test_wire_names_sharing_an_identifier_both_kept(self):
        code = _render(StructModel("Pet", (
            _field("petId"),
            _field("pet_id", "i64", fmt="integer"),
        )))
        assert '    #[serde(rename = "petId")]\n    pub pet_id: String,' in code
        assert '    #[serde(rename = "pet_id")]\n    pub pet_id_2: i64,' in code

    def test_unique_identifier_skips_taken_suffix(self):
        code = _render(StructModel("Pet", (
            _field("pet_id_2"),
            _field("pet_id"),
            _field("petId"),
        )))
        assert "    pub pet_id_2: String," in code
        assert '    #[serde(rename = "petId")]\n    pub pet_id_3: String,' in code

    def test_repeated_wire_name_emitted_once(self):
        code = _render(CompositionModel("Dog", (_field("id"), _field("id"))))
        assert code.count("pub id: String,") == 1

    def test_composition_doc(self):
        code = _render(CompositionModel("Dog", (_field("id"),)))
        assert "/// Dog (allOf composition)\n" in code
        assert "pub struct Dog {" in code

    def test_custom_attrs_follow_derive(self):
        attrs = ('#[serde(rename_all = "camelCase")]',)
        code = _render(StructModel("Pet", (), custom_attrs=attrs))
        assert (
            "#[derive(Debug, Clone, Serialize, Deserialize)]\n"
            '#[serde(rename_all = "camelCase")]\n'
            "pub struct Pet {"
        ) in code

    def test_custom_derive_replaces_default(self):
        attrs = ("#[derive(Debug, PartialEq)]",)
        code = _render(StructModel("Pet", (), custom_attrs=attrs))
        assert "#[derive(Debug, PartialEq)]\npub struct Pet {" in code
        assert "Clone" not in code


class TestEnums:
    """Test plain enums and unions."""

    def test_enum_variants_renamed(self):
        code = _render(EnumModel("Status", ("available", "in-stock", "Sold")))
        assert '    #[serde(rename = "available")]\n    Available,' in code
        assert '    #[serde(rename = "in-stock")]\n    InStock,' in code
        # Already a valid identifier matching the literal
        assert "    Sold," in code
        assert 'rename = "Sold"' not in code

    def test_reserved_variant(self):
        code = _render(EnumModel("Kind", ("self",)))
        assert '    #[serde(rename = "self")]\n    SelfValue,' in code

    def test_union(self):
        union = UnionModel("Shape", (
            UnionVariant("Circle", "Circle"),
            UnionVariant("Variant1", "String"),
        ), "oneOf")
        code = _render(union)
        assert (
            "/// Shape (oneOf)\n"
            "#[derive(Debug, Clone, Serialize, Deserialize)]\n"
            "#[serde(untagged)]\n"
            "pub enum Shape {\n"
            "    Circle(Circle),\n"
            "    Variant1(String),\n"
            "}\n"
        ) in code

    def test_any_of_doc(self):
        code = _render(UnionModel("Pet", (UnionVariant("Cat", "Cat"),), "anyOf"))
        assert "/// Pet (anyOf)" in code

    def test_declared_tagging_suppresses_untagged(self):
        attrs = ('#[serde(tag = "kind")]',)
        code = _render(UnionModel("Shape", (UnionVariant("Circle", "Circle"),), "oneOf", custom_attrs=attrs))
        assert '#[serde(tag = "kind")]' in code
        assert "untagged" not in code


class TestEnvelopes:
    """Test request and response wrapper structs."""

    def test_request(self):
        request = RequestEnvelope("CreatePetRequest", "application/json", "CreatePetRequestBody", True)
        code = _render(requests=[request])
        assert (
            "/// CreatePetRequest\n"
            "#[derive(Debug, Serialize)]\n"
            "pub struct CreatePetRequest {\n"
            "    pub content_type: String,\n"
            "    pub body: CreatePetRequestBody,\n"
            "}\n"
        ) in code

    def test_optional_request_body(self):
        request = RequestEnvelope("PatchPetRequest", "application/json", "Pet", False)
        assert "pub body: Option<Pet>," in _render(requests=[request])

    def test_response(self):
        response = ResponseEnvelope("GetPetResponse200", "200", "application/json", "Pet", "The pet")
        code = _render(responses=[response])
        assert (
            "/// The pet\n"
            "#[derive(Debug, Deserialize)]\n"
            "pub struct GetPetResponse200 {\n"
            "    pub body: Pet,\n"
            "}\n"
        ) in code

    def test_placeholders_skipped(self):
        code = _render(
            requests=[RequestEnvelope("UnknownRequest", "application/json", "String", True)],
            responses=[ResponseEnvelope("UnknownResponse200", "200", "application/json", "String")],
        )
        assert "Unknown" not in code

    def test_operation_named_like_placeholder_rendered(self):
        document = {
            "paths": {
                "/codes": {
                    "get": {
                        "operationId": "unknownResponseCodes",
                        "responses": {
                            "200": {
                                "description": "Codes",
                                "content": {"application/json": {"schema": {"type": "string"}}},
                            }
                        },
                    }
                }
            }
        }
        models, requests, responses = build_models(document)
        assert not responses[0].is_placeholder
        code = render_models(models, requests, responses)
        assert "pub struct UnknownResponseCodesResponse200 {" in code

    def test_placeholder_matches_status(self):
        response = ResponseEnvelope("UnknownResponse200", "404", "application/json", "String")
        assert not response.is_placeholder
        assert "pub struct UnknownResponse200 {" in _render(responses=[response])

    def test_order(self):
        code = _render(
            StructModel("Pet", ()),
            requests=[RequestEnvelope("AddPetRequest", "application/json", "Pet", True)],
            responses=[ResponseEnvelope("AddPetResponse201", "201", "application/json", "Pet")],
        )
        assert code.index("pub struct Pet {") < code.index("pub struct AddPetRequest {")
        assert code.index("pub struct AddPetRequest {") < code.index("pub struct AddPetResponse201 {")


class TestModelDispatch:
    def test_unknown_model_type(self):
        with pytest.raises(TypeError):
            render_models([object()], [], [])


class TestGenerate:
    """Test writing the output directory."""

    def test_writes_both_files(self, tmp_path):
        path = generate([StructModel("Pet", (_field("name"),))], [], [], tmp_path, title="Petstore")
        assert path == tmp_path / "models.rs"

        models_rs = path.read_text()
        assert models_rs.startswith("// Code generated by modelgen from Petstore. DO NOT EDIT.\n")
        assert models_rs.endswith("}\n")
        assert "pub struct Pet {" in models_rs

        mod_rs = (tmp_path / "mod.rs").read_text()
        assert mod_rs.endswith("pub mod models;\n")

    def test_petstore_end_to_end(self, petstore, tmp_path):
        generate(*build_models(petstore), tmp_path)
        code = (tmp_path / "models.rs").read_text()
        assert "use chrono::{DateTime, Utc};" in code
        assert "pub born: Option<DateTime<Utc>>," in code
        assert "pub struct CreatePetRequestBody {" in code
        assert "pub body: CreatePetRequestBody," in code
        assert "pub struct ListPetsResponse200 {" in code
        assert "pub body: Vec<Pet>," in code

    def test_pet_example_end_to_end(self, pet_example):
        code = render_models(*build_models(pet_example))
        assert (
            "pub struct Pet {\n"
            "    pub name: String,\n"
            "    pub tag: Option<String>,\n"
            "}\n"
        ) in code
        assert (
            "pub struct CreatePetRequestBody {\n"
            "    pub name: Option<String>,\n"
            "}\n"
        ) in code
        assert "pub body: Option<CreatePetRequestBody>," in code
        assert "chrono" not in code
