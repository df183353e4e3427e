import pytest

from app.utils.cpf import limpar, validar


@pytest.mark.parametrize("cpf", ["52998224725", "529.982.247-25", " 529 982 247 25 ", "11144477735"])
def test_valid(cpf):
    assert validar(cpf)


@pytest.mark.parametrize(
    "cpf",
    [None, "", "5299822472", "529982247250", "00000000000", "999.999.999-99", "52998224726", "52998224715"],
)
def test_invalid(cpf):
    assert not validar(cpf)


def test_limpar():
    assert limpar("529.982.247-25") == "52998224725"
    assert limpar(None) == ""
