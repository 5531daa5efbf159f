import unittest

from sistema_nfe import create_app
from sistema_nfe.config import Config
from sistema_nfe.db import DatabasePool
from tests.helpers.temp_db import TempDbSandbox, seed_localidades


class _CountingPool(DatabasePool):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.acquired = 0

    def acquire(self):
        self.acquired += 1
        return super().acquire()


class LocalidadesApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = TempDbSandbox(prefix="nfe_localidades")
        self.app = create_app(self.sandbox.make_config(Config))
        self.client = self.app.test_client()
        self.ids = seed_localidades(self.sandbox)

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    # search

    def test_city_search_returns_matches_with_state_name(self) -> None:
        response = self.client.get("/api/cidades/search?q=sao")
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()

        names = [item["name"] for item in payload]
        self.assertEqual(names, sorted(names))
        self.assertEqual(set(names), {"Sao Paulo", "Sao Carlos", "Sao Goncalo"})
        by_name = {item["name"]: item for item in payload}
        self.assertEqual(by_name["Sao Paulo"]["relatedName"], "Sao Paulo")
        self.assertEqual(by_name["Sao Goncalo"]["relatedName"], "Rio de Janeiro")
        self.assertEqual(by_name["Sao Carlos"]["id"], self.ids["cidades"]["Sao Carlos"])
        self.assertEqual(set(payload[0].keys()), {"id", "name", "relatedName"})

    def test_search_is_case_insensitive(self) -> None:
        response = self.client.get("/api/cidades/search?q=CAMP")
        self.assertEqual([item["name"] for item in response.get_json()], ["Campinas"])

    def test_search_folds_accented_letters(self) -> None:
        codest = self.ids["estados"]["SP"]
        self.sandbox.execute(
            "INSERT INTO cidades (nomecidade, codest) VALUES (?, ?)",
            ("SÃO JOSÉ DOS CAMPOS", codest),
        )
        for term in ("são josé", "SÃO JOSÉ", "São José"):
            response = self.client.get("/api/cidades/search", query_string={"q": term})
            self.assertEqual([item["name"] for item in response.get_json()], ["SÃO JOSÉ DOS CAMPOS"], term)

    def test_search_is_capped_at_ten_results(self) -> None:
        codest = self.ids["estados"]["SP"]
        for index in range(12):
            self.sandbox.execute(
                "INSERT INTO cidades (nomecidade, codest) VALUES (?, ?)",
                (f"Vila {index:02d}", codest),
            )
        response = self.client.get("/api/cidades/search?q=vila")
        payload = response.get_json()
        self.assertEqual(len(payload), 10)
        self.assertEqual([item["name"] for item in payload], [f"Vila {index:02d}" for index in range(10)])

    def test_search_treats_wildcards_literally(self) -> None:
        response = self.client.get("/api/cidades/search?q=%25")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), [])

    def test_search_without_matches_is_empty_list(self) -> None:
        response = self.client.get("/api/cidades/search?q=xyz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), [])

    def test_blank_search_term_is_rejected_without_touching_the_store(self) -> None:
        pool = _CountingPool(self.sandbox.db_path)
        config = self.sandbox.make_config(Config, TESTING=False, DB_AUTO_INIT=False)
        client = create_app(config, database=pool).test_client()

        for url in ("/api/cidades/search", "/api/cidades/search?q=", "/api/cidades/search?q=%20%20"):
            response = client.get(url)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.get_json(), {"error": "Parâmetro de busca não fornecido"})
        self.assertEqual(pool.acquired, 0)

    def test_state_and_country_search_related_names(self) -> None:
        estados = self.client.get("/api/estados/search?q=rio").get_json()
        self.assertEqual(estados, [{"id": self.ids["estados"]["RJ"], "name": "Rio de Janeiro", "relatedName": "Brasil"}])

        paises = self.client.get("/api/paises/search?q=bra").get_json()
        self.assertEqual(paises, [{"id": "BR", "name": "Brasil", "relatedName": None}])

    # paises

    def test_country_crud(self) -> None:
        created = self.client.post("/api/paises", json={"codpais": "pt", "nomepais": "Portugal"})
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.get_json(), {"codpais": "PT", "nomepais": "Portugal"})

        duplicate = self.client.post("/api/paises", json={"codpais": "PT", "nomepais": "Portugal"})
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.get_json()["error"], "Este código de país já está em uso")

        self.assertEqual(self.client.get("/api/paises/pt").get_json()["nomepais"], "Portugal")

        updated = self.client.put("/api/paises/PT", json={"nomepais": "República Portuguesa"})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.get_json()["nomepais"], "República Portuguesa")

        deleted = self.client.delete("/api/paises/PT")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.get_json(), {"message": "País excluído com sucesso"})
        self.assertEqual(self.client.get("/api/paises/PT").status_code, 404)

    def test_country_validation(self) -> None:
        response = self.client.post("/api/paises", json={"codpais": "BRA", "nomepais": "Brasil"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "O código do país deve ter exatamente 2 caracteres")

        response = self.client.post("/api/paises", json={"codpais": "CL"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Código e nome do país são obrigatórios")

    def test_country_with_states_cannot_be_deleted(self) -> None:
        response = self.client.delete("/api/paises/BR")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["error"],
            "Não é possível excluir o país pois existem estados vinculados",
        )
        self.assertEqual(self.client.get("/api/paises/BR").status_code, 200)

    def test_country_list_is_ordered_by_name(self) -> None:
        payload = self.client.get("/api/paises").get_json()
        self.assertEqual([item["codpais"] for item in payload], ["AR", "BR"])

    # estados

    def test_state_crud_and_country_reference(self) -> None:
        missing_country = self.client.post(
            "/api/estados",
            json={"nomeestado": "Buenos Aires", "uf": "BA", "codpais": "XX"},
        )
        self.assertEqual(missing_country.status_code, 404)
        self.assertEqual(missing_country.get_json(), {"error": "País não encontrado"})

        created = self.client.post(
            "/api/estados",
            json={"nomeestado": "Buenos Aires", "uf": "ba", "codpais": "ar"},
        )
        self.assertEqual(created.status_code, 201)
        estado = created.get_json()
        self.assertEqual(estado["uf"], "BA")
        self.assertEqual(estado["nomepais"], "Argentina")

        updated = self.client.put(f"/api/estados/{estado['codest']}", json={"nomeestado": "Provincia de Buenos Aires"})
        self.assertEqual(updated.get_json()["nomeestado"], "Provincia de Buenos Aires")
        self.assertEqual(updated.get_json()["uf"], "BA")

        deleted = self.client.delete(f"/api/estados/{estado['codest']}")
        self.assertEqual(deleted.get_json(), {"message": "Estado excluído com sucesso"})

    def test_state_with_cities_cannot_be_deleted(self) -> None:
        response = self.client.delete(f"/api/estados/{self.ids['estados']['SP']}")
        self.assertEqual(response.status_code, 400)
        self.assertIn("cidades vinculadas", response.get_json()["error"])

    def test_invalid_uf_is_rejected(self) -> None:
        response = self.client.post("/api/estados", json={"nomeestado": "Minas", "uf": "MGS", "codpais": "BR"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "A UF deve ter exatamente 2 caracteres")

    def test_cities_of_state(self) -> None:
        response = self.client.get(f"/api/estados/{self.ids['estados']['RJ']}/cidades")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [item["nomecidade"] for item in response.get_json()],
            ["Rio de Janeiro", "Sao Goncalo"],
        )
        self.assertEqual(self.client.get("/api/estados/999/cidades").status_code, 404)

    # cidades

    def test_city_crud(self) -> None:
        codest = self.ids["estados"]["SP"]
        created = self.client.post("/api/cidades", json={"nomecidade": "Santos", "codest": codest})
        self.assertEqual(created.status_code, 201)
        cidade = created.get_json()
        self.assertEqual(cidade["nomeestado"], "Sao Paulo")
        self.assertEqual(cidade["uf"], "SP")

        fetched = self.client.get(f"/api/cidades/{cidade['codcid']}")
        self.assertEqual(fetched.get_json(), cidade)

        moved = self.client.put(
            f"/api/cidades/{cidade['codcid']}",
            json={"codest": self.ids["estados"]["RJ"]},
        )
        self.assertEqual(moved.get_json()["nomecidade"], "Santos")
        self.assertEqual(moved.get_json()["uf"], "RJ")

        deleted = self.client.delete(f"/api/cidades/{cidade['codcid']}")
        self.assertEqual(deleted.get_json(), {"message": "Cidade excluída com sucesso"})
        missing = self.client.get(f"/api/cidades/{cidade['codcid']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.get_json(), {"error": "Cidade não encontrada"})

    def test_city_requires_existing_state(self) -> None:
        response = self.client.post("/api/cidades", json={"nomecidade": "Lugar Nenhum", "codest": 999})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Estado não encontrado"})

        response = self.client.post("/api/cidades", json={"nomecidade": "Sem Estado"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Nome da cidade e estado são obrigatórios")

    def test_city_list_carries_state(self) -> None:
        payload = self.client.get("/api/cidades").get_json()
        self.assertEqual(len(payload), 5)
        names = [item["nomecidade"] for item in payload]
        self.assertEqual(names, sorted(names))
        self.assertTrue(all(item["uf"] in {"SP", "RJ"} for item in payload))

    def test_city_with_supplier_cannot_be_deleted(self) -> None:
        codcid = self.ids["cidades"]["Campinas"]
        self.sandbox.execute(
            "INSERT INTO fornecedores (nomerazao, cnpj, codcid) VALUES ('Acme', '12345678000199', ?)",
            (codcid,),
        )
        response = self.client.delete(f"/api/cidades/{codcid}")
        self.assertEqual(response.status_code, 400)
        self.assertIn("fornecedores ou transportadoras", response.get_json()["error"])

    def test_non_numeric_city_id(self) -> None:
        response = self.client.get("/api/cidades/abc")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "Código da cidade inválido"})


if __name__ == "__main__":
    unittest.main()
