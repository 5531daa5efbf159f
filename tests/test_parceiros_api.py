import unittest

from sistema_nfe import create_app
from sistema_nfe.config import Config
from tests.helpers.temp_db import TempDbSandbox, seed_localidades


class ParceirosApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = TempDbSandbox(prefix="nfe_parceiros")
        self.app = create_app(self.sandbox.make_config(Config))
        self.client = self.app.test_client()
        self.ids = seed_localidades(self.sandbox)

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    def _post(self, resource: str, **overrides) -> dict:
        body = {
            "nomerazao": "Alfa Distribuidora Ltda",
            "cnpj": "12.345.678/0001-99",
            "inscricaoestadual": "123456789012",
            "endereco": "Rua das Flores",
            "numero": "100",
            "bairro": "Centro",
            "cep": "13010-100",
            "codcid": self.ids["cidades"]["Campinas"],
            "telefone": "1932320000",
            "email": "contato@alfa.com.br",
        }
        body.update(overrides)
        response = self.client.post(f"/api/{resource}", json=body)
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()

    def test_supplier_create_stores_digits_and_joins_city(self) -> None:
        fornecedor = self._post("fornecedores")
        self.assertEqual(fornecedor["cnpj"], "12345678000199")
        self.assertEqual(fornecedor["cep"], "13010100")
        self.assertEqual(fornecedor["nomecidade"], "Campinas")
        self.assertEqual(fornecedor["uf"], "SP")

        fetched = self.client.get(f"/api/fornecedores/{fornecedor['codforn']}")
        self.assertEqual(fetched.get_json(), fornecedor)

    def test_duplicate_cnpj_is_rejected(self) -> None:
        self._post("fornecedores")
        response = self.client.post(
            "/api/fornecedores",
            json={"nomerazao": "Outra Empresa", "cnpj": "12345678000199"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Já existe um cadastro com este CNPJ")

    def test_cnpj_must_have_fourteen_digits(self) -> None:
        response = self.client.post("/api/fornecedores", json={"nomerazao": "Beta", "cnpj": "123"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "CNPJ deve conter 14 dígitos")

        response = self.client.post("/api/fornecedores", json={"nomerazao": "Beta"})
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/api/fornecedores", json={"cnpj": "98765432000110"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Razão social é obrigatória")

    def test_unknown_city_is_not_found(self) -> None:
        response = self.client.post(
            "/api/transportadoras",
            json={"nomerazao": "Gama Transportes", "cnpj": "98765432000110", "codcid": 999},
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Cidade não encontrada"})

    def test_update_may_keep_own_cnpj(self) -> None:
        fornecedor = self._post("fornecedores")
        response = self.client.put(
            f"/api/fornecedores/{fornecedor['codforn']}",
            json={"cnpj": "12345678000199", "telefone": "1930000000"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["telefone"], "1930000000")
        self.assertEqual(response.get_json()["email"], "contato@alfa.com.br")

    def test_search_related_name_is_city(self) -> None:
        self._post("fornecedores")
        self._post("fornecedores", nomerazao="Alfa Sem Cidade", cnpj="11111111000111", codcid=None)
        payload = self.client.get("/api/fornecedores/search?q=alfa").get_json()
        self.assertEqual(
            [(item["name"], item["relatedName"]) for item in payload],
            [("Alfa Distribuidora Ltda", "Campinas"), ("Alfa Sem Cidade", None)],
        )

    def test_carrier_composed_view_and_links(self) -> None:
        transportadora = self._post("transportadoras", nomerazao="Rapido Cargas", cnpj="55666777000188")
        codtrans = transportadora["codtrans"]
        self.assertEqual(transportadora["fornecedores"], [])
        self.assertEqual(transportadora["veiculos"], [])

        fornecedor = self._post("fornecedores")
        linked = self.client.post(f"/api/transportadoras/{codtrans}/fornecedores", json={"codforn": fornecedor["codforn"]})
        self.assertEqual(linked.status_code, 201)
        self.assertEqual(
            linked.get_json()["fornecedores"],
            [{"codforn": fornecedor["codforn"], "nomerazao": "Alfa Distribuidora Ltda", "cnpj": "12345678000199"}],
        )

        duplicate = self.client.post(f"/api/transportadoras/{codtrans}/fornecedores", json={"codforn": fornecedor["codforn"]})
        self.assertEqual(duplicate.status_code, 400)

        with_vehicle = self.client.post(
            f"/api/transportadoras/{codtrans}/veiculos",
            json={"placa": "abc-1d23", "modelo": "Volvo FH"},
        )
        self.assertEqual(with_vehicle.status_code, 201)
        veiculos = with_vehicle.get_json()["veiculos"]
        self.assertEqual([item["placa"] for item in veiculos], ["ABC1D23"])

        view = self.client.get(f"/api/transportadoras/{codtrans}").get_json()
        self.assertEqual(view["nomecidade"], "Campinas")
        self.assertEqual(len(view["fornecedores"]), 1)
        self.assertEqual(len(view["veiculos"]), 1)

        blocked = self.client.delete(f"/api/transportadoras/{codtrans}")
        self.assertEqual(blocked.status_code, 400)
        self.assertEqual(
            blocked.get_json()["error"],
            "Não é possível excluir a transportadora pois existem fornecedores ou veículos vinculados",
        )
        supplier_blocked = self.client.delete(f"/api/fornecedores/{fornecedor['codforn']}")
        self.assertEqual(supplier_blocked.status_code, 400)

        codveiculo = veiculos[0]["codveiculo"]
        self.assertEqual(
            self.client.delete(f"/api/transportadoras/{codtrans}/veiculos/{codveiculo}").status_code,
            200,
        )
        self.assertEqual(
            self.client.delete(f"/api/transportadoras/{codtrans}/fornecedores/{fornecedor['codforn']}").status_code,
            200,
        )
        self.assertEqual(
            self.client.delete(f"/api/transportadoras/{codtrans}/fornecedores/{fornecedor['codforn']}").status_code,
            404,
        )

        deleted = self.client.delete(f"/api/transportadoras/{codtrans}")
        self.assertEqual(deleted.get_json(), {"message": "Transportadora excluída com sucesso"})

    def test_existing_vehicle_is_reused_by_plate(self) -> None:
        primeira = self._post("transportadoras", nomerazao="Primeira", cnpj="55666777000188")
        segunda = self._post("transportadoras", nomerazao="Segunda", cnpj="55666777000269")

        self.client.post(f"/api/transportadoras/{primeira['codtrans']}/veiculos", json={"placa": "XYZ9A87"})
        view = self.client.post(f"/api/transportadoras/{segunda['codtrans']}/veiculos", json={"placa": "xyz-9a87"}).get_json()

        self.assertEqual(self.sandbox.execute("SELECT COUNT(*) FROM veiculos"), [(1,)])
        self.assertEqual([item["placa"] for item in view["veiculos"]], ["XYZ9A87"])

    def test_vehicle_requires_plate_or_id(self) -> None:
        transportadora = self._post("transportadoras", nomerazao="Delta", cnpj="55666777000188")
        response = self.client.post(f"/api/transportadoras/{transportadora['codtrans']}/veiculos", json={"modelo": "Scania"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Placa do veículo é obrigatória")

        response = self.client.post(f"/api/transportadoras/{transportadora['codtrans']}/veiculos", json={"codveiculo": 77})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Veículo não encontrado"})


if __name__ == "__main__":
    unittest.main()
