"""initial schema: unidades, usuarios, processos, andamentos, logs

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "unidades",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("sigla", sa.String(), nullable=False),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("atualizado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("nome", name="uq_unidades_nome"),
        sa.UniqueConstraint("sigla", name="uq_unidades_sigla"),
    )

    op.create_table(
        "usuarios",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("nome_social", sa.String(), nullable=True),
        sa.Column("login", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("permissao", sa.String(), nullable=False, server_default="USR"),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("unidade_id", sa.String(), sa.ForeignKey("unidades.id"), nullable=False),
        sa.Column("ultimo_login", sa.DateTime(), nullable=True),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("atualizado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("login", name="uq_usuarios_login"),
        sa.UniqueConstraint("email", name="uq_usuarios_email"),
    )
    op.create_index("ix_usuarios_unidade_id", "usuarios", ["unidade_id"])

    op.create_table(
        "interessados",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("valor", sa.String(), nullable=False),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("valor", name="uq_interessados_valor"),
    )

    op.create_table(
        "origens_processo",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("valor", sa.String(), nullable=False),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("valor", name="uq_origens_processo_valor"),
    )

    op.create_table(
        "processos",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("numero_sei", sa.String(), nullable=False),
        sa.Column("assunto", sa.Text(), nullable=False),
        sa.Column("origem", sa.String(), nullable=True),
        sa.Column(
            "interessado_id",
            sa.String(),
            sa.ForeignKey("interessados.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "unidade_remetente_id",
            sa.String(),
            sa.ForeignKey("unidades.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("data_recebimento", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("prazo", sa.DateTime(), nullable=True),
        sa.Column("data_resposta_final", sa.DateTime(), nullable=True),
        sa.Column("resposta_final", sa.Text(), nullable=True),
        sa.Column("unidade_respondida_id", sa.String(), nullable=True),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("unidade_id", sa.String(), sa.ForeignKey("unidades.id"), nullable=False),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("atualizado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("numero_sei", name="uq_processos_numero_sei"),
    )
    op.create_index("ix_processos_unidade_id", "processos", ["unidade_id"])
    op.create_index("ix_processos_ativo", "processos", ["ativo"])

    op.create_table(
        "andamentos",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("processo_id", sa.String(), sa.ForeignKey("processos.id"), nullable=False),
        sa.Column("origem", sa.String(), nullable=False),
        sa.Column("destino", sa.String(), nullable=False),
        sa.Column("data_envio", sa.DateTime(), nullable=True),
        sa.Column("prazo", sa.DateTime(), nullable=True),
        sa.Column("prorrogacao", sa.DateTime(), nullable=True),
        sa.Column("resposta", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="EM_ANDAMENTO"),
        sa.Column("observacao", sa.Text(), nullable=True),
        sa.Column("assunto", sa.Text(), nullable=True),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("usuario_id", sa.String(), sa.ForeignKey("usuarios.id"), nullable=False),
        sa.Column("usuario_prorrogacao_id", sa.String(), sa.ForeignKey("usuarios.id"), nullable=True),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("atualizado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    )
    op.create_index("ix_andamentos_processo_id", "andamentos", ["processo_id"])
    op.create_index("ix_andamentos_status", "andamentos", ["status"])

    op.create_table(
        "logs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tipo_acao", sa.String(), nullable=False),
        sa.Column("descricao", sa.Text(), nullable=False),
        sa.Column("entidade", sa.String(), nullable=True),
        sa.Column("entidade_id", sa.String(), nullable=True),
        sa.Column("usuario_id", sa.String(), sa.ForeignKey("usuarios.id"), nullable=True),
        sa.Column("dados_antigos", sa.JSON(), nullable=True),
        sa.Column("dados_novos", sa.JSON(), nullable=True),
        sa.Column("criado_em", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    )
    op.create_index("ix_logs_entidade", "logs", ["entidade", "entidade_id"])


def downgrade() -> None:
    op.drop_index("ix_logs_entidade", table_name="logs")
    op.drop_table("logs")
    op.drop_index("ix_andamentos_status", table_name="andamentos")
    op.drop_index("ix_andamentos_processo_id", table_name="andamentos")
    op.drop_table("andamentos")
    op.drop_index("ix_processos_ativo", table_name="processos")
    op.drop_index("ix_processos_unidade_id", table_name="processos")
    op.drop_table("processos")
    op.drop_table("origens_processo")
    op.drop_table("interessados")
    op.drop_index("ix_usuarios_unidade_id", table_name="usuarios")
    op.drop_table("usuarios")
    op.drop_table("unidades")
