# ui/proyectos.py
from __future__ import annotations

import streamlit as st

from core.modelo import ProjectRecord
from core.repositorio import ProjectRepository
from ui.estado import WizardCtx, ctx_open


def _fila_proyecto(ctx: WizardCtx, repo: ProjectRepository, p: ProjectRecord) -> None:
    col1, col2, col3, col4 = st.columns([5, 1, 1, 1])

    with col1:
        if ctx.editing_name_id == p.id:
            nuevo = st.text_input("Project name", value=p.project_name, key=f"rename_{p.id}")
            if st.button("Save name", key=f"save_name_{p.id}"):
                repo.rename_project(p.id, nuevo)
                ctx.editing_name_id = None
                st.rerun()
        else:
            st.markdown(f"**{p.project_name or '(untitled)'}**")
            meta = [x for x in (p.client_name, p.last_updated) if x]
            if meta:
                st.caption(" · ".join(meta))

    with col2:
        if st.button("Open", key=f"open_{p.id}"):
            ctx_open(ctx, repo, p.id, is_new=False)
            st.rerun()
    with col3:
        if st.button("Rename", key=f"edit_{p.id}"):
            ctx.editing_name_id = p.id
            st.rerun()
    with col4:
        if st.button("Delete", key=f"delete_{p.id}"):
            repo.request_delete(p.id)
            st.rerun()


def _confirmar_borrado(repo: ProjectRepository) -> None:
    pid = repo.pending_delete
    if pid is None:
        return
    p = repo.get(pid)
    nombre = p.project_name if p is not None else pid
    st.warning(f"Delete project **{nombre}**? This cannot be undone.")
    c1, c2 = st.columns(2)
    if c1.button("Confirm delete", type="primary"):
        repo.confirm_delete()
        st.rerun()
    if c2.button("Cancel"):
        repo.cancel_delete()
        st.rerun()


def render_lista(ctx: WizardCtx, repo: ProjectRepository) -> None:
    st.title("Solar Projects")
    st.caption("Manage all your solar calculation projects in one place.")

    if st.button("➕ Create New Project", type="primary", use_container_width=True):
        p = repo.create_project()
        ctx_open(ctx, repo, p.id, is_new=True)
        st.rerun()

    _confirmar_borrado(repo)

    proyectos = repo.list_projects()
    if not proyectos:
        st.info("No projects yet. Create one to get started.")
        return

    for p in proyectos:
        _fila_proyecto(ctx, repo, p)
        st.divider()
