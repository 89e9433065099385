from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

import models
from conftest import create_tema, create_user
from essays_service import (
    create_essay,
    essay_stats,
    get_user_essay,
    grade_essay,
    list_essays,
    list_user_essays,
)


def _submit(db, user, tema, titulo="Minha redação"):
    return create_essay(
        db,
        user,
        tema_id=tema.id,
        titulo=titulo,
        arquivo_url="https://ucarecdn.com/abc/redacao.pdf",
    )


def test_submit_creates_pending_and_debits(db_session):
    user = create_user(db_session, email="aluno@redacione.com.br", credits=1)
    tema = create_tema(db_session)

    essay = _submit(db_session, user, tema)

    assert essay.status == models.STATUS_PENDENTE
    assert essay.nota is None
    assert essay.user_id == user.id
    assert db_session.get(models.User, user.id).credits == 0

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, user, tema, titulo="Segunda")
    assert exc.value.status_code == 402
    assert db_session.query(models.Essay).count() == 1


def test_submit_without_credits_writes_nothing(db_session):
    user = create_user(db_session, email="semcredito@redacione.com.br", credits=0)
    tema = create_tema(db_session)

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, user, tema)

    assert exc.value.status_code == 402
    assert db_session.query(models.Essay).count() == 0
    assert db_session.get(models.User, user.id).credits == 0


@pytest.mark.parametrize(
    "titulo, arquivo_url, status_code",
    [
        ("   ", "https://cdn/arquivo.pdf", 400),
        ("Título", "", 400),
    ],
)
def test_submit_validation_keeps_credits(db_session, titulo, arquivo_url, status_code):
    user = create_user(db_session, email="valida@redacione.com.br", credits=2)
    tema = create_tema(db_session)

    with pytest.raises(HTTPException) as exc:
        create_essay(
            db_session, user, tema_id=tema.id, titulo=titulo, arquivo_url=arquivo_url
        )

    assert exc.value.status_code == status_code
    assert db_session.get(models.User, user.id).credits == 2
    assert db_session.query(models.Essay).count() == 0


def test_submit_unknown_tema(db_session):
    user = create_user(db_session, email="tema@redacione.com.br", credits=2)

    with pytest.raises(HTTPException) as exc:
        create_essay(
            db_session, user, tema_id=42, titulo="x", arquivo_url="https://cdn/a.pdf"
        )

    assert exc.value.status_code == 404
    assert db_session.get(models.User, user.id).credits == 2


def test_grade_sets_status_score_and_file_together(db_session):
    user = create_user(db_session, email="nota@redacione.com.br", credits=1)
    tema = create_tema(db_session)
    essay = _submit(db_session, user, tema)

    graded = grade_essay(
        db_session,
        essay.id,
        nota=880,
        arquivo_corrigido_url="https://cdn/corrigida.pdf",
    )

    assert graded.status == models.STATUS_CORRIGIDA
    assert graded.nota == 880
    assert graded.arquivo_corrigido_url == "https://cdn/corrigida.pdf"
    assert graded.corrigida_em is not None


@pytest.mark.parametrize("nota", [-1, 1001])
def test_grade_out_of_range_leaves_essay_unchanged(db_session, nota):
    user = create_user(db_session, email="faixa@redacione.com.br", credits=1)
    tema = create_tema(db_session)
    essay = _submit(db_session, user, tema)

    with pytest.raises(HTTPException) as exc:
        grade_essay(
            db_session, essay.id, nota=nota, arquivo_corrigido_url="https://cdn/c.pdf"
        )

    assert exc.value.status_code == 400
    db_session.refresh(essay)
    assert essay.status == models.STATUS_PENDENTE
    assert essay.nota is None
    assert essay.arquivo_corrigido_url is None


def test_grade_requires_corrected_file(db_session):
    user = create_user(db_session, email="arquivo@redacione.com.br", credits=1)
    tema = create_tema(db_session)
    essay = _submit(db_session, user, tema)

    with pytest.raises(HTTPException) as exc:
        grade_essay(db_session, essay.id, nota=500, arquivo_corrigido_url=" ")

    assert exc.value.status_code == 400
    db_session.refresh(essay)
    assert essay.status == models.STATUS_PENDENTE


def test_grade_missing_essay(db_session):
    with pytest.raises(HTTPException) as exc:
        grade_essay(db_session, 7, nota=500, arquivo_corrigido_url="https://cdn/c.pdf")
    assert exc.value.status_code == 404


def test_lists_are_newest_first_and_scoped(db_session):
    ana = create_user(db_session, email="ana@redacione.com.br", credits=5)
    bia = create_user(db_session, email="bia@redacione.com.br", credits=5)
    tema = create_tema(db_session)

    primeira = _submit(db_session, ana, tema, titulo="Primeira")
    segunda = _submit(db_session, ana, tema, titulo="Segunda")
    outra = _submit(db_session, bia, tema, titulo="Outra")
    grade_essay(db_session, outra.id, nota=600, arquivo_corrigido_url="https://cdn/c.pdf")

    assert [e.id for e in list_user_essays(db_session, ana.id)] == [segunda.id, primeira.id]
    assert [e.id for e in list_essays(db_session, status="corrigida")] == [outra.id]
    assert len(list_essays(db_session)) == 3

    with pytest.raises(HTTPException) as exc:
        get_user_essay(db_session, ana, outra.id)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        list_essays(db_session, status="arquivada")
    assert exc.value.status_code == 400


def _essay(id_, dias, status, nota=None):
    return models.Essay(
        id=id_,
        titulo=f"R{id_}",
        arquivo_url="https://cdn/a.pdf",
        status=status,
        nota=nota,
        user_id=1,
        tema_id=1,
        created_at=datetime(2024, 3, 1) + timedelta(days=dias),
    )


def test_stats_without_graded_essays():
    stats = essay_stats([_essay(1, 0, "pendente"), _essay(2, 1, "pendente")])

    assert stats == {
        "redacoes_feitas": 2,
        "media_geral": 0,
        "melhor_nota": 0,
        "ultima_nota": 0,
        "historico": [],
    }


def test_stats_over_graded_essays():
    essays = [
        _essay(3, 2, "corrigida", 700),
        _essay(1, 0, "corrigida", 500),
        _essay(4, 3, "pendente"),
        _essay(2, 1, "corrigida", 625),
    ]

    stats = essay_stats(essays)

    assert stats["redacoes_feitas"] == 4
    assert stats["media_geral"] == 608
    assert stats["melhor_nota"] == 700
    assert stats["ultima_nota"] == 700
    assert stats["historico"] == [
        {"data": "01/03", "nota": 500},
        {"data": "02/03", "nota": 625},
        {"data": "03/03", "nota": 700},
    ]


def test_stats_history_keeps_last_ten():
    essays = [_essay(i, i, "corrigida", 100 + i) for i in range(1, 13)]

    historico = essay_stats(essays)["historico"]

    assert len(historico) == 10
    assert historico[0]["nota"] == 103
    assert historico[-1]["nota"] == 112


def test_grade_from_in_review(db_session):
    user = create_user(db_session, email="revisao@redacione.com.br", credits=1)
    tema = create_tema(db_session)
    essay = _submit(db_session, user, tema)
    essay.status = models.STATUS_EM_CORRECAO
    db_session.commit()

    graded = grade_essay(
        db_session, essay.id, nota=740, arquivo_corrigido_url="https://cdn/c.pdf"
    )

    assert graded.status == models.STATUS_CORRIGIDA
    assert graded.nota == 740


def test_regrade_overwrites_score_and_file(db_session):
    user = create_user(db_session, email="regrade@redacione.com.br", credits=1)
    tema = create_tema(db_session)
    essay = _submit(db_session, user, tema)
    grade_essay(db_session, essay.id, nota=600, arquivo_corrigido_url="https://cdn/v1.pdf")

    regraded = grade_essay(
        db_session, essay.id, nota=680, arquivo_corrigido_url="https://cdn/v2.pdf"
    )

    assert regraded.status == models.STATUS_CORRIGIDA
    assert regraded.nota == 680
    assert regraded.arquivo_corrigido_url == "https://cdn/v2.pdf"
    assert db_session.query(models.Essay).count() == 1


def test_stats_count_graded_zero():
    stats = essay_stats(
        [
            _essay(1, 0, "corrigida", 600),
            _essay(2, 1, "corrigida", 0),
        ]
    )

    assert stats["media_geral"] == 300
    assert stats["melhor_nota"] == 600
    assert stats["ultima_nota"] == 0
    assert stats["historico"][-1] == {"data": "02/03", "nota": 0}
