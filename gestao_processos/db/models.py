import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

PERMISSOES = ("DEV", "ADM", "TEC", "USR")
PERMISSOES_PRIVILEGIADAS = {"DEV", "ADM"}

STATUS_EM_ANDAMENTO = "EM_ANDAMENTO"
STATUS_PRORROGADO = "PRORROGADO"
STATUS_CONCLUIDO = "CONCLUIDO"
STATUS_ANDAMENTO = (STATUS_EM_ANDAMENTO, STATUS_PRORROGADO, STATUS_CONCLUIDO)


class Unidade(Base):
    __tablename__ = "unidades"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    nome = Column(String, nullable=False, unique=True)
    sigla = Column(String, nullable=False, unique=True)
    ativo = Column(Boolean, nullable=False, default=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)
    atualizado_em = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    usuarios = relationship("Usuario", back_populates="unidade")
    processos = relationship(
        "Processo", back_populates="unidade", foreign_keys="Processo.unidade_id"
    )


class Usuario(Base):
    __tablename__ = "usuarios"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    nome = Column(String, nullable=False)
    nome_social = Column(String, nullable=True)
    login = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    permissao = Column(String, nullable=False, default="USR")
    ativo = Column(Boolean, nullable=False, default=True)
    unidade_id = Column(String, ForeignKey("unidades.id"), nullable=False)
    ultimo_login = Column(DateTime, nullable=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)
    atualizado_em = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    unidade = relationship("Unidade", back_populates="usuarios")


class Interessado(Base):
    __tablename__ = "interessados"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    valor = Column(String, nullable=False, unique=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)

    processos = relationship("Processo", back_populates="interessado")


class OrigemProcesso(Base):
    __tablename__ = "origens_processo"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    valor = Column(String, nullable=False, unique=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)


class Processo(Base):
    __tablename__ = "processos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    numero_sei = Column(String, nullable=False, unique=True)
    assunto = Column(Text, nullable=False)
    origem = Column(String, nullable=True)
    interessado_id = Column(String, ForeignKey("interessados.id", ondelete="SET NULL"), nullable=True)
    unidade_remetente_id = Column(String, ForeignKey("unidades.id", ondelete="SET NULL"), nullable=True)
    data_recebimento = Column(DateTime, default=datetime.now, nullable=False)
    prazo = Column(DateTime, nullable=True)
    data_resposta_final = Column(DateTime, nullable=True)
    resposta_final = Column(Text, nullable=True)
    unidade_respondida_id = Column(String, nullable=True)
    ativo = Column(Boolean, nullable=False, default=True)
    unidade_id = Column(String, ForeignKey("unidades.id"), nullable=False)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)
    atualizado_em = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    unidade = relationship("Unidade", back_populates="processos", foreign_keys=[unidade_id])
    unidade_remetente = relationship("Unidade", foreign_keys=[unidade_remetente_id])
    interessado = relationship("Interessado", back_populates="processos")
    andamentos = relationship(
        "Andamento", back_populates="processo", order_by="Andamento.criado_em.desc()"
    )


class Andamento(Base):
    __tablename__ = "andamentos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    processo_id = Column(String, ForeignKey("processos.id"), nullable=False)
    origem = Column(String, nullable=False)
    destino = Column(String, nullable=False)
    data_envio = Column(DateTime, nullable=True)
    prazo = Column(DateTime, nullable=True)
    prorrogacao = Column(DateTime, nullable=True)
    resposta = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=STATUS_EM_ANDAMENTO)
    observacao = Column(Text, nullable=True)
    assunto = Column(Text, nullable=True)
    ativo = Column(Boolean, nullable=False, default=True)
    usuario_id = Column(String, ForeignKey("usuarios.id"), nullable=False)
    usuario_prorrogacao_id = Column(String, ForeignKey("usuarios.id"), nullable=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)
    atualizado_em = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    processo = relationship("Processo", back_populates="andamentos")
    usuario = relationship("Usuario", foreign_keys=[usuario_id])
    usuario_prorrogacao = relationship("Usuario", foreign_keys=[usuario_prorrogacao_id])


class Log(Base):
    __tablename__ = "logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    tipo_acao = Column(String, nullable=False)
    descricao = Column(Text, nullable=False)
    entidade = Column(String, nullable=True)
    entidade_id = Column(String, nullable=True)
    usuario_id = Column(String, ForeignKey("usuarios.id"), nullable=True)
    dados_antigos = Column(JSON, nullable=True)
    dados_novos = Column(JSON, nullable=True)
    criado_em = Column(DateTime, default=datetime.now, nullable=False)
